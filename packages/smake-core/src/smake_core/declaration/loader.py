"""YAML project-file loading into declarative nodes.

A project file is a list of mappings::

    - rule: build
      cmd: cc -o out in.c
      in: [in.c]
      out: out

The first key of each mapping is the tag name and its value the tag's
values; every later key becomes a child tag, in file order. A scalar is one
value, a list is many, null is none. The list may also sit under a single
top-level ``rules`` key.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from smake_core.declaration.models import Tag
from smake_core.declaration.parser import ParseReport, parse_rules
from smake_core.interfaces.filesystem import FileSystem, LocalFileSystem


def _tag_values(raw: Any) -> tuple[Any, ...]:
    if raw is None:
        return ()
    if isinstance(raw, list):
        return tuple(raw)
    return (raw,)


def _tag_from_entry(entry: Any, path: Path, index: int) -> Tag:
    if not isinstance(entry, dict) or not entry:
        raise ValueError(
            f"Invalid project file {path}: declaration #{index + 1} must be a non-empty mapping"
        )
    (name, raw_values), *rest = entry.items()
    children = tuple(Tag(name=str(key), values=_tag_values(value)) for key, value in rest)
    return Tag(name=str(name), values=_tag_values(raw_values), children=children)


def load_project(path: str | Path) -> list[Tag]:
    """Read a YAML project file and return its top-level declarations."""
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ValueError(f"Cannot read project file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid project file {path}: {e}") from e

    if raw is None:
        return []
    if isinstance(raw, dict) and list(raw) == ["rules"]:
        raw = raw["rules"] or []
    if not isinstance(raw, list):
        raise ValueError(
            f"Invalid project file {path}: expected a list of declarations at top-level"
        )
    return [_tag_from_entry(entry, path, i) for i, entry in enumerate(raw)]


def load_rules(path: str | Path, fs: FileSystem | None = None) -> ParseReport:
    """Load a project file and build its rules.

    Rule paths are relative to the project file's directory unless a
    filesystem with another root is supplied.
    """
    path = Path(path)
    if fs is None:
        fs = LocalFileSystem(path.resolve().parent)
    return parse_rules(load_project(path), fs=fs)
