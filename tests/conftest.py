"""Shared test fixtures for smake."""

from __future__ import annotations

import os
import time
from pathlib import Path

import pytest

from smake_core.declaration import Tag


class FakeFileSystem:
    """In-memory ``FileSystem`` with exact, hand-picked modification times.

    Paths in ``vanishing`` exist for ``exists`` but disappear before their
    modification time can be read, like a file deleted mid-evaluation.
    """

    def __init__(self, mtimes: dict[str, int] | None = None, vanishing: set[str] | None = None):
        self.mtimes = dict(mtimes or {})
        self.vanishing = set(vanishing or ())
        self.calls: list[tuple[str, str]] = []

    def exists(self, path: str) -> bool:
        self.calls.append(("exists", path))
        return path in self.mtimes or path in self.vanishing

    def modification_time(self, path: str) -> int:
        self.calls.append(("modification_time", path))
        if path in self.mtimes:
            return self.mtimes[path]
        raise FileNotFoundError(path)


@pytest.fixture
def fake_fs():
    return FakeFileSystem()


@pytest.fixture
def build_tag():
    """The canonical ``build`` declaration: cc in.c into out."""
    return Tag(
        name="rule",
        values=("build",),
        children=(
            Tag(name="cmd", values=("cc -o out in.c",)),
            Tag(name="in", values=("in.c",)),
            Tag(name="out", values=("out",)),
        ),
    )


def touch(path: Path, mtime: float, content: str = "x") -> Path:
    """Create *path* (and parents) with a fixed modification time."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def base_time():
    """A whole-second timestamp safely in the past."""
    return float(int(time.time()) - 3600)


PROJECT_YAML = """\
- rule: build
  cmd: cc -o out in.c
  in: [in.c]
  out: out
- rule: docs
  cmd: [mkdocs build, touch site/.done]
  in: [docs/index.md, mkdocs.yml]
  out: site/.done
- rule: lint
  cmd: ruff check .
- task: deploy
  cmd: ./deploy.sh
"""


@pytest.fixture
def project_dir(tmp_path: Path, base_time: float) -> Path:
    """A project where ``build`` is stale, ``docs`` fresh, ``lint`` has no inputs."""
    (tmp_path / "smake.yaml").write_text(PROJECT_YAML)
    touch(tmp_path / "in.c", base_time + 100)
    touch(tmp_path / "out", base_time + 50)
    touch(tmp_path / "docs" / "index.md", base_time + 10)
    touch(tmp_path / "mkdocs.yml", base_time + 20)
    touch(tmp_path / "site" / ".done", base_time + 30)
    return tmp_path
