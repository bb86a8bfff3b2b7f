"""Tests for the smake CLI (status, check, explain, config)."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

import smake.cli as cli
from conftest import touch
from smake.cli import app
from smake_core.interfaces import FileQueryError, LocalFileSystem

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch):
    """Keep the user's real config out of CLI runs."""
    monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
    monkeypatch.setattr(cli, "_config", None)


def _project(project_dir: Path) -> str:
    return str(project_dir / "smake.yaml")


@pytest.fixture
def locked_output_project(tmp_path: Path, base_time: float, monkeypatch) -> str:
    """A stale rule whose first output is missing and second can't be stat'ed.

    The verdict stops at the missing output, so only the per-output
    diagnostics ever touch the unreadable one.
    """
    (tmp_path / "smake.yaml").write_text("- rule: build\n  cmd: cc\n  in: in.c\n  out: [missing, locked]\n")
    touch(tmp_path / "in.c", base_time)
    original = LocalFileSystem.exists

    def exists(self, path: str) -> bool:
        if path == "locked":
            raise FileQueryError(path, "exists", PermissionError(13, "Permission denied"))
        return original(self, path)

    monkeypatch.setattr(LocalFileSystem, "exists", exists)
    return str(tmp_path / "smake.yaml")


# ── smake status ─────────────────────────────────────────────────────


class TestStatus:
    def test_ci_output_uses_stable_wording(self, project_dir: Path):
        result = runner.invoke(app, ["status", _project(project_dir), "--ci"])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == 'build: {"in.c"} -> {"out"} via {"cc -o out in.c"} (needs update)'
        assert lines[1] == (
            'docs: {"docs/index.md" "mkdocs.yml"} -> {"site/.done"} '
            'via {"mkdocs build", "touch site/.done"} (does not need update)'
        )
        assert lines[2] == 'lint: {} -> {} via {"ruff check ."} (invalid!)'
        assert lines[3].startswith("REJECTED task 'deploy'")

    def test_ci_verbose_adds_diagnostics(self, project_dir: Path):
        result = runner.invoke(app, ["status", _project(project_dir), "--ci", "--verbose"])

        assert result.exit_code == 0
        assert '* "out" is older than "in.c", needs update.' in result.output
        assert '* "site/.done" is newest, does not need update.' in result.output

    def test_table_output(self, project_dir: Path):
        result = runner.invoke(app, ["status", _project(project_dir)])

        assert result.exit_code == 0
        assert "Rules (3)" in result.output
        assert "stale" in result.output
        assert "fresh" in result.output
        assert "indeterminate" in result.output
        assert "rejected" in result.output

    def test_verbose_from_config(self, project_dir: Path, monkeypatch):
        monkeypatch.chdir(project_dir)
        (project_dir / "smake.config.yaml").write_text("report:\n  verbose: true\n")

        result = runner.invoke(app, ["status", "--ci"])

        assert result.exit_code == 0
        assert '* "out" is older than "in.c", needs update.' in result.output

    def test_empty_project(self, tmp_path: Path):
        (tmp_path / "smake.yaml").write_text("")
        result = runner.invoke(app, ["status", str(tmp_path / "smake.yaml")])
        assert result.exit_code == 0
        assert "No rules declared" in result.output

    def test_missing_project_file(self, tmp_path: Path):
        result = runner.invoke(app, ["status", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_filesystem_error_exits_1(self, project_dir: Path, monkeypatch):
        def denied(self, path: str) -> bool:
            raise FileQueryError(path, "exists", PermissionError(13, "Permission denied"))

        monkeypatch.setattr("smake_core.interfaces.filesystem.LocalFileSystem.exists", denied)
        result = runner.invoke(app, ["status", _project(project_dir), "--ci"])

        assert result.exit_code == 1
        assert "Permission denied" in result.output

    @pytest.mark.parametrize("args", [["--ci", "--verbose"], ["--verbose"]])
    def test_filesystem_error_in_diagnostics_exits_1(self, locked_output_project, args):
        result = runner.invoke(app, ["status", locked_output_project, *args])

        assert result.exit_code == 1
        assert not isinstance(result.exception, FileQueryError)
        assert "Error:" in result.output
        assert "Permission denied" in result.output


# ── smake check ──────────────────────────────────────────────────────


class TestCheck:
    def test_ci_summary(self, project_dir: Path):
        result = runner.invoke(app, ["check", _project(project_dir), "--ci"])

        assert result.exit_code == 0
        assert "STALE build" in result.output
        assert "INDETERMINATE lint (no-inputs)" in result.output
        assert "stale=1 fresh=1 indeterminate=1 rejected=1" in result.output

    def test_fail_on_stale(self, project_dir: Path):
        result = runner.invoke(app, ["check", _project(project_dir), "--fail-on-stale"])
        assert result.exit_code == 1
        assert "1 rule(s) need update" in result.output

    def test_fail_on_invalid(self, tmp_path: Path, base_time: float):
        (tmp_path / "smake.yaml").write_text("- rule: a\n  cmd: x\n  in: missing.c\n  out: a.o\n")
        touch(tmp_path / "a.o", base_time)
        project = str(tmp_path / "smake.yaml")

        assert runner.invoke(app, ["check", project]).exit_code == 0
        result = runner.invoke(app, ["check", project, "--fail-on-invalid", "--ci"])
        assert result.exit_code == 1
        assert "INDETERMINATE a (missing-input)" in result.output

    def test_fail_flags_from_config(self, project_dir: Path):
        config = project_dir / "ci.yaml"
        config.write_text("report:\n  fail_on_stale: true\n")

        result = runner.invoke(app, ["--config", str(config), "check", _project(project_dir)])
        assert result.exit_code == 1

        result = runner.invoke(
            app, ["--config", str(config), "check", _project(project_dir), "--no-fail-on-stale"]
        )
        assert result.exit_code == 0

    def test_all_fresh(self, project_dir: Path, base_time: float):
        touch(project_dir / "out", base_time + 200)
        result = runner.invoke(app, ["check", _project(project_dir), "--fail-on-stale"])
        assert result.exit_code == 0
        assert "up to date" in result.output


# ── smake explain ────────────────────────────────────────────────────


class TestExplain:
    def test_explains_stale_rule(self, project_dir: Path):
        result = runner.invoke(app, ["explain", "build", _project(project_dir)])

        assert result.exit_code == 0
        assert result.output == (
            '{"in.c"} -> {"out"} via {"cc -o out in.c"} (needs update)\n'
            '* "out" is older than "in.c", needs update.\n'
        )

    def test_lists_missing_inputs(self, tmp_path: Path):
        (tmp_path / "smake.yaml").write_text("- rule: a\n  cmd: x\n  in: [gone.c, also.c]\n")
        result = runner.invoke(app, ["explain", "a", str(tmp_path / "smake.yaml")])

        assert result.exit_code == 0
        assert "(invalid!)" in result.output
        assert "missing inputs: gone.c, also.c" in result.output

    def test_reports_no_inputs(self, project_dir: Path):
        result = runner.invoke(app, ["explain", "lint", _project(project_dir)])
        assert result.exit_code == 0
        assert "indeterminate: no-inputs" in result.output

    def test_filesystem_error_in_diagnostics_exits_1(self, locked_output_project):
        result = runner.invoke(app, ["explain", "build", locked_output_project])

        assert result.exit_code == 1
        assert not isinstance(result.exception, FileQueryError)
        assert "Error:" in result.output

    def test_unknown_rule(self, project_dir: Path):
        result = runner.invoke(app, ["explain", "nope", _project(project_dir)])
        assert result.exit_code == 1
        assert "no rule named" in result.output


# ── smake config ─────────────────────────────────────────────────────


class TestConfigCommands:
    def test_init_creates_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 0
        assert (tmp_path / "smake.config.yaml").is_file()

    def test_init_refuses_to_overwrite(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "smake.config.yaml").write_text("log_level: info\n")
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_show(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "smake.yaml" in result.output

    def test_bad_config_exits_1(self, tmp_path: Path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("log_level: loud\n")
        result = runner.invoke(app, ["--config", str(bad), "config", "show"])
        assert result.exit_code == 1
        assert "Invalid config" in result.output
