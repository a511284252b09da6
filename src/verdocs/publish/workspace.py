"""Disposable working copies for a publish run.

Stability: stable
Since: 0.1.0
Dependencies: git (external)
Doc-Types: API_REFERENCE, TECHNICAL_DESIGN
Tags: worktree, workspace, cleanup

A publish run needs two independent checkouts: the source revision being
documented and the publish branch receiving the output. Both are git
worktrees created in fresh temporary directories outside the main working
tree, and both must be removed however the run ends.

``WorkspaceManager`` is a context manager; every working copy it hands
out is released on ``__exit__``, including after exceptions, and
``release`` itself is idempotent and tolerates half-created copies (the
temporary directory exists but ``git worktree add`` failed).

Usage::

    with WorkspaceManager(repo) as workspaces:
        source = workspaces.acquire("v1.2.3")
        pages = workspaces.allocate("gh-pages")
        ...
    # both worktrees removed and pruned here
"""

from __future__ import annotations

import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from verdocs.core.errors import GitCommandError, RefNotFound
from verdocs.core.logging import get_logger
from verdocs.publish.git import GitRepository

logger = get_logger(__name__)


@dataclass
class WorkingCopy:
    """One ephemeral checkout owned by the orchestrator."""

    ref: str
    path: Path
    released: bool = False
    attached: bool = False
    commit: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    def __fspath__(self) -> str:
        return str(self.path)


class WorkspaceManager:
    """Create and tear down worktrees of a ``GitRepository``.

    Parameters
    ----------
    repo
        Repository the worktrees belong to.
    temp_root
        Directory under which temporary directories are created
        (default: the system temp dir).
    """

    def __init__(self, repo: GitRepository, *, temp_root: Path | None = None) -> None:
        self.repo = repo
        self.temp_root = temp_root
        self._copies: list[WorkingCopy] = []

    def __enter__(self) -> WorkspaceManager:
        return self

    def __exit__(self, *exc_info) -> None:
        self.release_all()

    @property
    def active(self) -> list[WorkingCopy]:
        return [wc for wc in self._copies if not wc.released]

    # ------------------------------------------------------------------
    # Acquisition
    # ------------------------------------------------------------------

    def allocate(self, ref: str, prefix: str = "verdocs-") -> WorkingCopy:
        """Reserve an empty temporary directory for a worktree of ``ref``.

        The copy is registered for release before anything is checked out,
        so a failure in the subsequent ``git worktree add`` still leaves
        nothing behind.
        """
        path = Path(tempfile.mkdtemp(prefix=prefix, dir=self.temp_root))
        working_copy = WorkingCopy(ref=ref, path=path)
        self._copies.append(working_copy)
        return working_copy

    def acquire(self, ref: str) -> WorkingCopy:
        """Check out ``ref`` (detached) into a fresh working copy.

        Raises:
            RefNotFound: If ``ref`` does not resolve to a commit.
        """
        commit = self.repo.resolve_commit(ref)
        if commit is None:
            raise RefNotFound(ref)

        working_copy = self.allocate(ref, prefix="verdocs-src-")
        try:
            self.repo.worktree_add_detached(working_copy.path, commit)
        except GitCommandError as exc:
            raise RefNotFound(ref, f"Could not check out {ref}: {exc.message}", cause=exc) from exc
        working_copy.attached = True
        working_copy.commit = commit
        logger.info("workspace.acquired", ref=ref, commit=commit[:12], path=str(working_copy.path))
        return working_copy

    # ------------------------------------------------------------------
    # Release
    # ------------------------------------------------------------------

    def release(self, working_copy: WorkingCopy) -> None:
        """Remove a working copy; calling it again is a no-op."""
        if working_copy.released:
            return
        working_copy.released = True

        try:
            self.repo.worktree_remove(working_copy.path)
        except GitCommandError as exc:
            # Not registered (never attached, or already removed).
            logger.debug("workspace.remove_skipped", path=str(working_copy.path), reason=exc.message)
        if working_copy.path.exists():
            shutil.rmtree(working_copy.path, ignore_errors=True)
        try:
            self.repo.worktree_prune()
        except GitCommandError as exc:
            logger.warning("workspace.prune_failed", error=exc.message)
        logger.info("workspace.released", ref=working_copy.ref, path=str(working_copy.path))

    def release_all(self) -> None:
        """Release every copy handed out, newest first."""
        for working_copy in reversed(self._copies):
            self.release(working_copy)


__all__ = ["WorkingCopy", "WorkspaceManager"]
