"""Filesystem query capability consumed by the freshness engine."""

from __future__ import annotations

import errno
import os
from pathlib import Path
from typing import Protocol, runtime_checkable

# errno values that mean "the path is not there" rather than "we can't look"
_MISSING_ERRNOS = {errno.ENOENT, errno.ENOTDIR}


class FileQueryError(OSError):
    """Wraps an OS failure on a filesystem query with the path and operation."""

    def __init__(self, path: str, operation: str, cause: OSError) -> None:
        self.path = path
        self.operation = operation
        super().__init__(cause.errno, f"{operation} failed for {path!r}: {cause.strerror or cause}")
        self.__cause__ = cause


@runtime_checkable
class FileSystem(Protocol):
    """Existence and modification-time lookups.

    ``modification_time`` raises ``FileNotFoundError`` when the path does not
    exist (e.g. it vanished after an ``exists`` check). Any other failure is
    raised as ``FileQueryError``.
    """

    def exists(self, path: str) -> bool: ...

    def modification_time(self, path: str) -> int: ...


class LocalFileSystem:
    """``FileSystem`` backed by ``os.stat``, with nanosecond mtimes.

    Relative paths are resolved against *root* when one is given, otherwise
    against the current working directory at query time.
    """

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root) if root is not None else None

    def _resolve(self, path: str) -> Path:
        if self.root is None:
            return Path(path)
        return self.root / path

    def _stat(self, path: str, operation: str) -> os.stat_result:
        try:
            return os.stat(self._resolve(path))
        except FileNotFoundError:
            raise
        except OSError as e:
            if e.errno in _MISSING_ERRNOS:
                raise FileNotFoundError(e.errno, e.strerror, str(path)) from e
            raise FileQueryError(path, operation, e) from e
        except ValueError as e:
            # os.stat rejects paths with embedded NUL bytes before any syscall
            raise FileQueryError(path, operation, OSError(errno.EINVAL, str(e))) from e

    def exists(self, path: str) -> bool:
        try:
            self._stat(path, "exists")
        except FileNotFoundError:
            return False
        return True

    def modification_time(self, path: str) -> int:
        return self._stat(path, "modification_time").st_mtime_ns

    def __repr__(self) -> str:
        return f"LocalFileSystem(root={str(self.root) if self.root else None!r})"
