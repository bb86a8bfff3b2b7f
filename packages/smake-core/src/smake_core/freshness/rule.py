"""Rules and their lazily computed, memoized freshness.

A rule is stale when any output is missing or older than the newest input.
Every base fact (validity, input mtimes, newest input, verdict) is computed
against the filesystem on first access and then cached for the lifetime of
the ``Rule`` instance. Cached facts are never invalidated: to pick up
filesystem changes, build a new ``Rule``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from smake_core.freshness.models import (
    FreshnessVerdict,
    IndeterminateReason,
    OutputUpdateInfo,
)
from smake_core.interfaces.filesystem import FileSystem, LocalFileSystem

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class _FreshnessState:
    """Cache holder for a rule's base facts, filled once per slot."""

    __slots__ = ("lock", "invalid", "input_times", "last_input_mod", "verdict")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.invalid = _UNSET
        self.input_times = _UNSET
        self.last_input_mod = _UNSET
        self.verdict = _UNSET

    def computed(self) -> list[str]:
        """Names of the slots filled so far."""
        return [s for s in self.__slots__[1:] if getattr(self, s) is not _UNSET]


_ESCAPES = str.maketrans(
    {
        **{chr(c): f"\\x{c:02X}" for c in (*range(0x20), 0x7F)},
        "\\": "\\\\",
        '"': '\\"',
        "\0": "\\0",
        "\a": "\\a",
        "\b": "\\b",
        "\t": "\\t",
        "\n": "\\n",
        "\v": "\\v",
        "\f": "\\f",
        "\r": "\\r",
    }
)


def _quote(text: str) -> str:
    """Double-quoted string literal; control characters never break the line."""
    return f'"{text.translate(_ESCAPES)}"'


class UpdateInfoView:
    """Restartable view over a rule's per-output diagnostics.

    Each iteration re-queries the outputs; nothing is cached here.
    """

    def __init__(self, rule: Rule) -> None:
        self._rule = rule

    def __iter__(self) -> Iterator[OutputUpdateInfo]:
        for output in self._rule.outputs:
            yield self._rule._describe_output(output)

    def __len__(self) -> int:
        return len(self._rule.outputs)

    def __repr__(self) -> str:
        return f"UpdateInfoView(rule={self._rule.name!r})"


@dataclass(frozen=True)
class Rule:
    """A named unit of work: commands that turn inputs into outputs."""

    name: str
    commands: tuple[str, ...]
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()
    fs: FileSystem = field(default_factory=LocalFileSystem, compare=False, repr=False)
    _state: _FreshnessState = field(
        default_factory=_FreshnessState, init=False, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        for attr in ("commands", "inputs", "outputs"):
            value = getattr(self, attr)
            if isinstance(value, str):
                raise TypeError(f"{attr} must be a sequence of strings, not a string")
            object.__setattr__(self, attr, tuple(value))
        if not self.name:
            raise ValueError("rule name must be non-empty")
        if not self.commands:
            raise ValueError(f"rule {self.name!r} must have at least one command")

    # ------------------------------------------------------------------
    # Memoization
    # ------------------------------------------------------------------

    def _memoized(self, slot: str, compute: Callable[[], Any]) -> Any:
        state = self._state
        value = getattr(state, slot)
        if value is _UNSET:
            with state.lock:
                value = getattr(state, slot)
                if value is _UNSET:
                    value = compute()
                    setattr(state, slot, value)
        return value

    # ------------------------------------------------------------------
    # Base facts
    # ------------------------------------------------------------------

    @property
    def invalid(self) -> bool:
        """True if any declared input does not exist."""
        return self._memoized(
            "invalid", lambda: any(not self.fs.exists(i) for i in self.inputs)
        )

    @property
    def input_times(self) -> tuple[int, ...] | None:
        """Input mtimes in declaration order, or None if an input is missing."""
        return self._memoized("input_times", self._compute_input_times)

    @property
    def last_input_mod(self) -> int | None:
        """Newest input mtime, or None when there are no usable inputs."""
        return self._memoized(
            "last_input_mod", lambda: max(self.input_times) if self.input_times else None
        )

    @property
    def verdict(self) -> FreshnessVerdict:
        return self._memoized("verdict", self._compute_verdict)

    @property
    def update_needed(self) -> bool | None:
        """True if stale, False if fresh, None if indeterminate."""
        return self.verdict.update_needed

    def _compute_input_times(self) -> tuple[int, ...] | None:
        if self.invalid:
            return None
        times: list[int] = []
        for path in self.inputs:
            try:
                times.append(self.fs.modification_time(path))
            except FileNotFoundError:
                logger.warning("Input %s of rule %s vanished during evaluation", path, self.name)
                return None
        return tuple(times)

    def _compute_verdict(self) -> FreshnessVerdict:
        newest = self.last_input_mod
        if newest is None:
            if self.input_times is None:
                return FreshnessVerdict.indeterminate(IndeterminateReason.MISSING_INPUT)
            return FreshnessVerdict.indeterminate(IndeterminateReason.NO_INPUTS)
        for output in self.outputs:
            mtime = self._output_time(output)
            if mtime is None or mtime < newest:
                return FreshnessVerdict.stale()
        return FreshnessVerdict.fresh()

    def _output_time(self, output: str) -> int | None:
        """Output mtime, or None if it is missing or vanished mid-query."""
        if not self.fs.exists(output):
            return None
        try:
            return self.fs.modification_time(output)
        except FileNotFoundError:
            logger.debug("Output %s of rule %s vanished during evaluation", output, self.name)
            return None

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def get_update_info(self) -> UpdateInfoView:
        """Per-output explanation of why each output does or doesn't need updating."""
        return UpdateInfoView(self)

    def _describe_output(self, output: str) -> OutputUpdateInfo:
        mtime = self._output_time(output)
        if mtime is None:
            return OutputUpdateInfo(output=output, needs_update=True, exists=False)
        # First declared input that is newer wins, not the newest one.
        for path, t in zip(self.inputs, self.input_times or ()):
            if t > mtime:
                return OutputUpdateInfo(output=output, input=path, needs_update=True, exists=True)
        return OutputUpdateInfo(output=output, needs_update=False, exists=True)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        needed = self.update_needed
        if needed is None:
            status = "invalid!"
        else:
            status = "needs update" if needed else "does not need update"
        return "{%s} -> {%s} via {%s} (%s)" % (
            " ".join(_quote(i) for i in self.inputs),
            " ".join(_quote(o) for o in self.outputs),
            ", ".join(_quote(c) for c in self.commands),
            status,
        )

    def render(self, verbose: bool = False) -> str:
        """Summary line, plus one diagnostic line per output when verbose."""
        summary = str(self)
        if not verbose or self.invalid:
            return summary
        return summary + "".join(f"\n* {info}" for info in self.get_update_info())
