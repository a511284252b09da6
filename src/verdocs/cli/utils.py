"""
CLI utility helpers: consoles, error reporting and repository/config loading.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from verdocs.config import PublishConfig
from verdocs.core.errors import VerdocsError
from verdocs.core.logging import configure_logging
from verdocs.publish.git import GitRepository

console = Console()
err_console = Console(stderr=True)


# ── Error reporting ──────────────────────────────────────────────────────


def format_error(exc: VerdocsError) -> str:
    """``Error [stage] (CATEGORY): message`` as plain text."""
    stage = f" [{exc.stage}]" if exc.stage else ""
    return f"Error{stage} ({exc.category.value}): {exc.message}"


def fail(exc: VerdocsError) -> typer.Exit:
    """Print ``exc`` on stderr and return the exit to raise."""
    err_console.print(f"[bold red]{escape(format_error(exc))}[/bold red]")
    return typer.Exit(code=1)


# ── Loading helpers ──────────────────────────────────────────────────────


def load_context(
    repo: Path | None,
    config_file: Path | None = None,
    *,
    verbose: bool = False,
    **overrides: str | None,
) -> tuple[GitRepository, PublishConfig]:
    """Locate the repository, resolve the config and configure logging."""
    repository = GitRepository.discover(repo)
    config = PublishConfig.load(config_file, repo_root=repository.root, **overrides)
    configure_logging(
        level="DEBUG" if verbose else config.log_level,
        json_format=config.json_logs,
    )
    return repository, config
