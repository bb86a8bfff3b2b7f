"""Project watcher: batches file changes and re-evaluates the rules they touch."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable, Iterable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from smake_core.freshness.rule import Rule

logger = logging.getLogger(__name__)

_DEFAULT_IGNORE = {".git", "__pycache__"}


def _should_ignore(path: str, ignore: set[str]) -> bool:
    """Return True if the path contains any ignored directory component."""
    return any(part in ignore for part in Path(path).parts)


class _DebouncedHandler(FileSystemEventHandler):
    """Collects changed paths and flushes them as one batch once events go quiet.

    Every event restarts the timer, so a burst of writes (a compiler touching
    several outputs, an editor's save dance) produces a single flush.
    """

    def __init__(
        self,
        debounce_seconds: float,
        on_change: Callable[[frozenset[str]], None],
        ignore: set[str],
    ) -> None:
        super().__init__()
        self._debounce = debounce_seconds
        self._on_change = on_change
        self._ignore = ignore
        self._lock = threading.Lock()
        self._pending: set[str] = set()
        self._timer: threading.Timer | None = None

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        paths = [str(event.src_path)]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(str(dest))
        paths = [p for p in paths if not _should_ignore(p, self._ignore)]
        if not paths:
            return

        with self._lock:
            self._pending.update(paths)
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._debounce, self.flush)
            self._timer.daemon = True
            self._timer.start()

    @property
    def pending(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._pending)

    def flush(self) -> None:
        """Hand every pending path to the callback now, as one batch."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            batch = frozenset(self._pending)
            self._pending.clear()
        if not batch:
            return

        try:
            self._on_change(batch)
        except Exception:
            logger.exception("Rule re-evaluation failed after changes to %s", ", ".join(sorted(batch)))

    def cancel(self) -> None:
        """Drop pending paths without flushing them."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending.clear()


class RuleWatcher:
    """Watches a project directory and re-checks rules after changes settle.

    Rules memoize their freshness, so the watcher never reuses an instance:
    after each quiet period *rule_factory* builds brand-new ``Rule`` objects
    and *callback* receives the ones whose inputs or outputs changed. A change
    to *project_file* itself hands over every rule.

    Rule paths are taken relative to *project_root*.
    """

    def __init__(
        self,
        project_root: Path,
        rule_factory: Callable[[], Iterable[Rule]],
        callback: Callable[[list[Rule]], None],
        debounce_seconds: float = 0.5,
        ignore_patterns: Iterable[str] = (),
        project_file: Path | None = None,
    ) -> None:
        self._project_root = Path(project_root).resolve()
        self._project_file = str(Path(project_file).resolve()) if project_file else None
        self._rule_factory = rule_factory
        self._callback = callback
        self._lock = threading.Lock()
        self._changed: set[str] = set()
        self._observer: Observer | None = None
        self._handler = _DebouncedHandler(
            debounce_seconds=debounce_seconds,
            on_change=self._reevaluate,
            ignore=_DEFAULT_IGNORE | set(ignore_patterns),
        )

    @property
    def changed_paths(self) -> set[str]:
        """Snapshot of absolute paths seen changing since the last ``clear``."""
        with self._lock:
            return set(self._changed)

    def _absolute(self, path: str) -> str:
        return os.path.normpath(os.path.join(self._project_root, path))

    def _touches(self, rule: Rule, paths: frozenset[str]) -> bool:
        return any(self._absolute(p) in paths for p in (*rule.inputs, *rule.outputs))

    def _reevaluate(self, paths: frozenset[str]) -> None:
        with self._lock:
            self._changed.update(paths)

        rules = list(self._rule_factory())
        if self._project_file is not None and self._project_file in paths:
            affected = rules
        else:
            affected = [rule for rule in rules if self._touches(rule, paths)]
        logger.debug(
            "%d change(s) affect %d of %d rule(s)", len(paths), len(affected), len(rules)
        )
        if affected:
            self._callback(affected)

    def start(self) -> None:
        """Begin watching the project directory recursively."""
        if self._observer is not None:
            return
        self._observer = Observer()
        self._observer.schedule(self._handler, str(self._project_root), recursive=True)
        self._observer.start()
        logger.info("Watching %s for changes", self._project_root)

    def stop(self) -> None:
        """Stop watching and discard changes that have not been flushed yet."""
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        self._handler.cancel()
        logger.info("Stopped watching %s", self._project_root)

    def clear(self) -> None:
        with self._lock:
            self._changed.clear()
