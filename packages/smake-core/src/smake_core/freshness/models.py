"""Result models for rule freshness: verdicts and per-output diagnostics."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator


class Freshness(str, Enum):
    """Three-valued freshness of a rule."""

    FRESH = "fresh"
    STALE = "stale"
    INDETERMINATE = "indeterminate"


class IndeterminateReason(str, Enum):
    """Why a rule's freshness could not be computed."""

    MISSING_INPUT = "missing-input"
    NO_INPUTS = "no-inputs"


class FreshnessVerdict(BaseModel):
    """Tagged freshness result. ``reason`` is set only when indeterminate."""

    model_config = ConfigDict(frozen=True)

    state: Freshness
    reason: IndeterminateReason | None = None

    @model_validator(mode="after")
    def _reason_matches_state(self) -> FreshnessVerdict:
        if (self.state is Freshness.INDETERMINATE) != (self.reason is not None):
            raise ValueError("reason is required for, and only for, indeterminate verdicts")
        return self

    @classmethod
    def fresh(cls) -> FreshnessVerdict:
        return cls(state=Freshness.FRESH)

    @classmethod
    def stale(cls) -> FreshnessVerdict:
        return cls(state=Freshness.STALE)

    @classmethod
    def indeterminate(cls, reason: IndeterminateReason) -> FreshnessVerdict:
        return cls(state=Freshness.INDETERMINATE, reason=reason)

    @property
    def update_needed(self) -> bool | None:
        """The verdict as an optional bool; None when indeterminate."""
        if self.state is Freshness.INDETERMINATE:
            return None
        return self.state is Freshness.STALE


class OutputUpdateInfo(BaseModel):
    """Why one output does or does not need to be rebuilt.

    ``input`` names the first declared input that is newer than the output.
    It is None when the output is up to date or does not exist at all.
    """

    model_config = ConfigDict(frozen=True)

    output: str
    input: str | None = None
    needs_update: bool
    exists: bool

    def __str__(self) -> str:
        if not self.exists:
            return f'"{self.output}" nonexistent, needs update.'
        if self.needs_update:
            return f'"{self.output}" is older than "{self.input}", needs update.'
        return f'"{self.output}" is newest, does not need update.'
