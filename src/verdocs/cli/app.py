"""
Root Typer application for the verdocs CLI.

Commands::

    verdocs publish v1.2.3 [--repo PATH] [--config FILE] [--branch NAME]
                           [--remote NAME] [--json] [--verbose]
    verdocs versions [--repo PATH] [--branch NAME] [--json]
    verdocs --version

Progress lines and errors go to stderr; stdout carries only the summary
table or, with ``--json``, the ``PublishResult`` document.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.table import Table

from verdocs.cli.utils import console, err_console, fail, load_context
from verdocs.core.errors import VerdocsError
from verdocs.publish.orchestrator import PublishOrchestrator
from verdocs.publish.reconcile import published_versions
from verdocs.publish.results import OverallStatus, PublishResult

app = typer.Typer(
    name="verdocs",
    help="verdocs: publish versioned documentation to a git branch.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("verdocs")
        except PackageNotFoundError:
            from verdocs import __version__ as v
        typer.echo(f"verdocs {v}")
        raise typer.Exit()


@app.callback()
def root(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """verdocs CLI: build tagged docs into vX.Y.Z/ and keep latest/ in sync."""


# ── publish ──────────────────────────────────────────────────────────────


@app.command("publish")
def publish(
    ctx: typer.Context,
    tag: str | None = typer.Argument(None, help="Tag (or ref) whose documentation is published."),
    repo: Path | None = typer.Option(None, "--repo", "-C", help="Repository path (default: cwd)."),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="YAML config file."),
    branch: str | None = typer.Option(None, "--branch", "-b", help="Publish branch."),
    remote: str | None = typer.Option(None, "--remote", "-r", help="Remote consulted for the branch."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    """Build the documentation of TAG into the publish branch and commit it."""
    if not tag:
        err_console.print(ctx.get_usage(), markup=False, highlight=False)
        err_console.print("Missing argument 'TAG'.", markup=False)
        raise typer.Exit(code=1)

    orchestrator: PublishOrchestrator | None = None
    try:
        repository, config = load_context(
            repo, config_file, verbose=verbose, branch=branch, remote=remote
        )
        orchestrator = PublishOrchestrator(repository, config, console=err_console)
        result = orchestrator.run(tag)
    except VerdocsError as exc:
        if as_json and orchestrator is not None and orchestrator.result is not None:
            _print_json(orchestrator.result)
        raise fail(exc) from exc

    if as_json:
        _print_json(result)
        return
    _print_result(result)


def _print_json(result: PublishResult) -> None:
    console.print_json(result.model_dump_json())


def _print_result(result: PublishResult) -> None:
    table = Table(title=f"Publish {result.version or result.tag} → {result.branch}")
    table.add_column("Stage", style="cyan")
    table.add_column("Status")
    table.add_column("Duration", justify="right")
    table.add_column("Detail", overflow="fold")
    for stage in result.stages:
        style = "green" if stage.status == OverallStatus.PASSED else "red"
        table.add_row(
            stage.name,
            f"[{style}]{stage.status.value}[/]",
            f"{stage.duration_seconds:.2f}s",
            stage.detail or "",
        )
    console.print(table)
    style = "green" if result.overall_status == OverallStatus.PASSED else "red"
    console.print(f"\n[bold {style}]{result.overall_status.value}[/] {result.summary}")


# ── versions ─────────────────────────────────────────────────────────────


@app.command("versions")
def versions(
    repo: Path | None = typer.Option(None, "--repo", "-C", help="Repository path (default: cwd)."),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="YAML config file."),
    branch: str | None = typer.Option(None, "--branch", "-b", help="Publish branch."),
    as_json: bool = typer.Option(False, "--json", help="Print the versions as JSON."),
) -> None:
    """List the versions published on the branch, newest first."""
    try:
        repository, config = load_context(repo, config_file, branch=branch)
        labels = published_versions(repository, config.branch, remote=config.remote)
    except VerdocsError as exc:
        raise fail(exc) from exc

    latest = labels[0] if labels else None
    if as_json:
        payload = {
            "branch": config.branch,
            "latest": str(latest) if latest else None,
            "versions": [str(label) for label in labels],
        }
        console.print_json(json.dumps(payload))
        return

    if not labels:
        console.print(f"[dim]No versions published on {config.branch}.[/dim]")
        return

    table = Table(title=f"Versions on {config.branch}")
    table.add_column("Version", style="cyan")
    table.add_column("Latest", justify="center")
    table.add_column("Prerelease", justify="center")
    for label in labels:
        table.add_row(
            str(label),
            "✓" if label == latest else "",
            "✓" if label.is_prerelease else "",
        )
    console.print(table)


def main() -> None:
    """Console-script entry point."""
    app()
