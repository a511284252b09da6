"""Versioned-publish orchestrator.

Stability: stable
Since: 0.1.0
Dependencies: git (external), rich, structlog
Doc-Types: API_REFERENCE, TECHNICAL_DESIGN
Tags: orchestrator, pipeline, publish

One run publishes the documentation of one tag::

    version ─► workspace ─► branch ─► build ─► reconcile ─► commit
    parse_tag   source copy  publish    generator  latest /     idempotent
                             copy       into vX.Y.Z  landing    commit

All stages run inside one ``WorkspaceManager`` scope, so both working copies
are removed on every exit path: success, failure, or SIGTERM (which is
turned into ``PublishInterrupted`` for the duration of the run). Every
stage prints a progress line before and a result line after, and any
``VerdocsError`` escaping a stage carries that stage's name in its context,
so the last line of a failed run names the failing stage.

Example::

    repo = GitRepository.discover()
    config = PublishConfig.load(repo_root=repo.root)
    result = PublishOrchestrator(repo, config).run("v1.2.3")
    print(result.summary)
"""

from __future__ import annotations

import signal
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

from verdocs.core.errors import ErrorCategory, PublishInterrupted, VerdocsError
from verdocs.core.logging import LogContext, get_logger
from verdocs.publish.branch import PublishBranchResolver
from verdocs.publish.builder import DocumentationBuilder
from verdocs.publish.commit import CommitManager
from verdocs.publish.git import GitRepository
from verdocs.publish.pages import PageRenderer
from verdocs.publish.reconcile import VersionSetReconciler
from verdocs.publish.results import (
    CommitSummary,
    OverallStatus,
    PublishResult,
    ReconcileSummary,
    StageResult,
)
from verdocs.publish.version import parse_tag
from verdocs.publish.workspace import WorkspaceManager

if TYPE_CHECKING:
    from verdocs.config import PublishConfig

logger = get_logger(__name__)

STAGES = ("version", "workspace", "branch", "build", "reconcile", "commit")


class PublishOrchestrator:
    """Run the publish pipeline for one tag.

    Parameters
    ----------
    repo
        Repository holding both the tag and the publish branch.
    config
        Effective ``PublishConfig``.
    builder
        Documentation builder; defaults to ``DocumentationBuilder.from_config``.
    console
        Where progress lines go (default: stderr, keeping stdout for
        ``--json``).
    temp_root
        Parent directory for temporary working copies.
    """

    def __init__(
        self,
        repo: GitRepository,
        config: PublishConfig,
        *,
        builder: DocumentationBuilder | None = None,
        renderer: PageRenderer | None = None,
        console: Console | None = None,
        temp_root: Path | None = None,
    ):
        self.repo = repo
        self.config = config
        self.builder = builder or DocumentationBuilder.from_config(config, repo_root=repo.root)
        self.renderer = renderer or PageRenderer()
        self.console = console or Console(stderr=True)
        self.temp_root = temp_root
        self.result: PublishResult | None = None
        self._previous_sigterm = None

    def run(self, tag: str) -> PublishResult:
        """Publish ``tag``'s documentation into the publish branch.

        The returned result is also kept on ``self.result``; when the run
        raises, ``self.result`` holds the stages completed so far.

        Raises:
            VerdocsError: The first failure, tagged with its stage.
        """
        result = PublishResult(tag=tag, branch=self.config.branch)
        self.result = result
        installed = self._install_signal_handlers()
        try:
            with LogContext(tag=tag, branch=self.config.branch):
                logger.info("publish.started")
                with WorkspaceManager(self.repo, temp_root=self.temp_root) as workspaces:
                    self._run_stages(tag, result, workspaces)
        except VerdocsError as exc:
            result.error = exc.message
            result.mark_complete(
                OverallStatus.CANCELLED if isinstance(exc, PublishInterrupted) else OverallStatus.FAILED
            )
            logger.error("publish.failed", tag=tag, stage=exc.stage, error=exc.message)
            raise
        finally:
            self._restore_signal_handlers(installed)

        result.mark_complete()
        logger.info("publish.completed", tag=tag, summary=result.summary)
        return result

    def _run_stages(self, tag: str, result: PublishResult, workspaces: WorkspaceManager) -> None:
        with self._stage(result, "version") as stage:
            version = parse_tag(tag)
            result.version = str(version)
            stage.detail = str(version)

        with self._stage(result, "workspace") as stage:
            source = workspaces.acquire(tag)
            result.source_commit = source.commit
            stage.detail = (source.commit or "")[:12]

        with self._stage(result, "branch") as stage:
            resolver = PublishBranchResolver(self.repo, workspaces, self.config, self.renderer)
            publish = resolver.resolve()
            result.branch_source = resolver.source.value if resolver.source else None
            stage.detail = f"{self.config.branch} ({result.branch_source})"

        with self._stage(result, "build") as stage:
            output = self.builder.build(source, version, publish)
            stage.detail = output.name

        with self._stage(result, "reconcile") as stage:
            reconciler = VersionSetReconciler(self.repo, self.config, self.renderer)
            outcome = reconciler.reconcile(version, publish, source)
            result.reconcile = ReconcileSummary.from_outcome(outcome)
            stage.detail = f"latest {outcome.latest}" + ("" if outcome.is_latest else " (root untouched)")

        with self._stage(result, "commit") as stage:
            committer = CommitManager(self.repo, self.config.commit_message)
            record = committer.commit(publish, version)
            result.commit = CommitSummary.from_record(record)
            stage.detail = "nothing to commit" if record.is_noop else (record.sha or "")[:12]

    @contextmanager
    def _stage(self, result: PublishResult, name: str) -> Iterator[StageResult]:
        """Time one stage and tag any error escaping it with the stage name."""
        stage = result.add_stage(name)
        stage.start()
        self.console.print(f"[bold]→ {name}[/]")
        try:
            yield stage
        except VerdocsError as exc:
            if exc.stage is None:
                exc.with_context(stage=name)
            stage.finish(OverallStatus.FAILED, error=exc)
            self.console.print(f"[red]✗ {name}[/] {escape(exc.message)}")
            raise
        except Exception as exc:
            error = VerdocsError(
                f"Unexpected error during {name}: {exc}",
                category=ErrorCategory.INTERNAL,
                cause=exc,
            ).with_context(stage=name)
            stage.finish(OverallStatus.FAILED, error=error)
            self.console.print(f"[red]✗ {name}[/] {escape(error.message)}")
            raise error from exc
        stage.finish(OverallStatus.PASSED)
        suffix = f" {escape(stage.detail)}" if stage.detail else ""
        self.console.print(f"[green]✓ {name}[/]{suffix}")

    # ------------------------------------------------------------------
    # Signal handling
    # ------------------------------------------------------------------

    def _handle_signal(self, signum, frame):
        logger.warning("publish.signal_received", signum=signum)
        raise PublishInterrupted(signum)

    def _install_signal_handlers(self) -> bool:
        # Only possible in the main thread.
        try:
            self._previous_sigterm = signal.signal(signal.SIGTERM, self._handle_signal)
        except (ValueError, OSError):
            return False
        return True

    def _restore_signal_handlers(self, installed: bool) -> None:
        if not installed:
            return
        signal.signal(signal.SIGTERM, self._previous_sigterm or signal.SIG_DFL)


__all__ = ["PublishOrchestrator", "STAGES"]
