"""CLI entry point for smake."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Annotated, TypeVar

import typer
import yaml
from rich import print as rprint
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from smake_core.config import DEFAULT_CONFIG_TEMPLATE, SmakeConfig, load_config
from smake_core.declaration import ParseReport, load_rules
from smake_core.freshness import Freshness, Rule, RuleWatcher
from smake_core.interfaces import FileQueryError, LocalFileSystem

app = typer.Typer(
    name="smake",
    help="Minimal build tool: report which rules are stale and why.",
)

config_app = typer.Typer(help="Manage smake configuration.")
app.add_typer(config_app, name="config")

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_STATUS_STYLE = {
    Freshness.STALE: "[red]stale[/red]",
    Freshness.FRESH: "[green]fresh[/green]",
    Freshness.INDETERMINATE: "[yellow]indeterminate[/yellow]",
}

# Global state
_config: SmakeConfig | None = None

T = TypeVar("T")


def _get_config() -> SmakeConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to smake.config.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    logging.basicConfig(
        level=_LOG_LEVELS[_config.log_level],
        format="%(levelname)s %(name)s: %(message)s",
    )


def _project_paths(project: str | None) -> tuple[Path, Path]:
    """Resolve (project file, root that rule paths are relative to)."""
    cfg = _get_config()
    project_path = Path(project or cfg.project.file)
    if cfg.project.root:
        return project_path, Path(cfg.project.root).resolve()
    return project_path, project_path.resolve().parent


def _load_report(project: str | None) -> ParseReport:
    project_path, root = _project_paths(project)
    try:
        return load_rules(project_path, fs=LocalFileSystem(root))
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def _query(rule: Rule, compute: Callable[[], T]) -> T:
    """Run a filesystem-backed query on *rule*, turning failures into a CLI error."""
    try:
        return compute()
    except FileQueryError as e:
        rprint(f"[red]Error:[/red] rule {escape(rule.name)}: {escape(str(e))}")
        raise typer.Exit(1)


def _evaluate(rule: Rule) -> Freshness:
    return _query(rule, lambda: rule.verdict.state)


def _render(rule: Rule, verbose: bool) -> str:
    return _query(rule, lambda: rule.render(verbose=verbose))


def _status_label(rule: Rule) -> str:
    label = _STATUS_STYLE[_evaluate(rule)]
    if rule.verdict.reason is not None:
        label += f" [dim]({rule.verdict.reason.value})[/dim]"
    return label


@app.command()
def status(
    project: Annotated[str | None, typer.Argument(help="Path to the project file")] = None,
    verbose: Annotated[
        bool | None, typer.Option("--verbose/--brief", "-v", help="Per-output diagnostics")
    ] = None,
    ci: Annotated[bool, typer.Option("--ci", help="Machine-readable output")] = False,
) -> None:
    """Show the freshness of every rule in the project."""
    cfg = _get_config()
    show_details = verbose if verbose is not None else cfg.report.verbose
    report = _load_report(project)

    if ci:
        for rule in report.rules:
            typer.echo(f"{rule.name}: {_render(rule, show_details)}")
        for entry in report.rejected:
            typer.echo(f"REJECTED {entry}")
        return

    if not report.rules and not report.rejected:
        rprint("[yellow]No rules declared.[/yellow]")
        return

    table = Table(title=f"Rules ({len(report.rules)})")
    table.add_column("Rule", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Summary", style="dim")
    for rule in report.rules:
        table.add_row(escape(rule.name), _status_label(rule), escape(str(rule)))
    rprint(table)

    if show_details:
        for rule in report.rules:
            if rule.invalid:
                continue
            tree = Tree(f"[bold]{escape(rule.name)}[/bold]")
            for info in _query(rule, lambda: list(rule.get_update_info())):
                style = "red" if info.needs_update else "green"
                tree.add(f"[{style}]{escape(str(info))}[/{style}]")
            rprint(tree)

    for entry in report.rejected:
        rprint(f"  [yellow]rejected:[/yellow] {escape(entry)}")


@app.command()
def check(
    project: Annotated[str | None, typer.Argument(help="Path to the project file")] = None,
    ci: Annotated[bool, typer.Option("--ci", help="Machine-readable output")] = False,
    fail_on_stale: Annotated[
        bool | None,
        typer.Option("--fail-on-stale/--no-fail-on-stale", help="Exit 1 if any rule is stale"),
    ] = None,
    fail_on_invalid: Annotated[
        bool | None,
        typer.Option(
            "--fail-on-invalid/--no-fail-on-invalid",
            help="Exit 1 if any rule is indeterminate or any declaration was rejected",
        ),
    ] = None,
) -> None:
    """Count stale, fresh and indeterminate rules."""
    cfg = _get_config()
    stale_exit = fail_on_stale if fail_on_stale is not None else cfg.report.fail_on_stale
    invalid_exit = fail_on_invalid if fail_on_invalid is not None else cfg.report.fail_on_invalid
    report = _load_report(project)

    counts = {state: 0 for state in Freshness}
    for rule in report.rules:
        state = _evaluate(rule)
        counts[state] += 1
        if state is Freshness.FRESH:
            continue
        if ci:
            suffix = f" ({rule.verdict.reason.value})" if rule.verdict.reason else ""
            typer.echo(f"{state.value.upper()} {rule.name}{suffix}")
        else:
            rprint(f"{_status_label(rule)} {escape(rule.name)}")

    summary = (
        f"stale={counts[Freshness.STALE]} fresh={counts[Freshness.FRESH]} "
        f"indeterminate={counts[Freshness.INDETERMINATE]} rejected={len(report.rejected)}"
    )
    if ci:
        typer.echo(summary)
    elif counts[Freshness.STALE]:
        rprint(f"\n[red]{counts[Freshness.STALE]} rule(s) need update.[/red] [dim]{summary}[/dim]")
    else:
        rprint(f"\n[green]All determinable rules up to date.[/green] [dim]{summary}[/dim]")

    if stale_exit and counts[Freshness.STALE]:
        raise typer.Exit(code=1)
    if invalid_exit and (counts[Freshness.INDETERMINATE] or report.rejected):
        raise typer.Exit(code=1)


@app.command()
def explain(
    name: Annotated[str, typer.Argument(help="Rule name")],
    project: Annotated[str | None, typer.Argument(help="Path to the project file")] = None,
) -> None:
    """Explain why one rule does or doesn't need an update."""
    report = _load_report(project)
    rule = report.get(name)
    if rule is None:
        rprint(f"[red]Error:[/red] no rule named {escape(name)!r}")
        raise typer.Exit(1)

    typer.echo(_render(rule, verbose=True))
    if rule.invalid:
        missing = _query(rule, lambda: [i for i in rule.inputs if not rule.fs.exists(i)])
        typer.echo(f"missing inputs: {', '.join(missing)}")
    elif rule.verdict.reason is not None:
        typer.echo(f"indeterminate: {rule.verdict.reason.value}")


@app.command()
def watch(
    project: Annotated[str | None, typer.Argument(help="Path to the project file")] = None,
) -> None:
    """Re-check rules whenever project files change (Ctrl+C to stop)."""
    cfg = _get_config()
    project_path, root = _project_paths(project)
    _load_report(project)  # fail fast on an unreadable project file

    def _rules() -> list[Rule]:
        return load_rules(project_path, fs=LocalFileSystem(root)).rules

    def _report(rules: list[Rule]) -> None:
        for rule in rules:
            typer.echo(f"{rule.name}: {rule.render(verbose=True)}")

    watcher = RuleWatcher(
        root,
        rule_factory=_rules,
        callback=_report,
        debounce_seconds=cfg.watch.debounce_seconds,
        ignore_patterns=cfg.watch.ignore_patterns,
        project_file=project_path,
    )
    rprint(f"[bold]Watching[/bold] {escape(str(root))}")
    watcher.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        watcher.stop()


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default smake.config.yaml in current directory."""
    target = Path("smake.config.yaml")
    if target.exists() and not force:
        rprint("[yellow]smake.config.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
