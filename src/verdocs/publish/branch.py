"""Materialize a working copy of the publish branch.

Stability: stable
Since: 0.1.0
Dependencies: git (external)
Doc-Types: API_REFERENCE, TECHNICAL_DESIGN
Tags: git, branch, orphan, worktree

Branch selection, in strict priority order:

1. ``refs/heads/<branch>`` exists: check it out.
2. The configured remote has the branch: fetch it and create a local
   branch tracking ``<remote>/<branch>``.
3. Otherwise start a new orphan branch with an empty tree and commit an
   initial placeholder (optionally containing the static-host
   configuration file) so the branch has a tip to diff against.

A remote that is not configured at all is treated as "branch not on
remote"; a configured remote that cannot be queried is a failure. Every
git failure surfaces as ``BranchResolutionFailed`` with the git error as
its cause.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from verdocs.core.errors import BranchResolutionFailed, GitCommandError
from verdocs.core.logging import get_logger
from verdocs.publish.git import GitRepository
from verdocs.publish.pages import PageRenderer
from verdocs.publish.workspace import WorkingCopy, WorkspaceManager

if TYPE_CHECKING:
    from verdocs.config import PublishConfig

logger = get_logger(__name__)


class BranchSource(str, Enum):
    """How the publish branch working copy was obtained."""

    LOCAL = "local"
    REMOTE = "remote"
    ORPHAN = "orphan"


class PublishBranchResolver:
    """Produce a ``WorkingCopy`` bound to the publish branch.

    Example::

        resolver = PublishBranchResolver(repo, workspaces, config)
        pages = resolver.resolve()
        resolver.source   # BranchSource.LOCAL / REMOTE / ORPHAN
    """

    def __init__(
        self,
        repo: GitRepository,
        workspaces: WorkspaceManager,
        config: PublishConfig,
        renderer: PageRenderer | None = None,
    ):
        self.repo = repo
        self.workspaces = workspaces
        self.config = config
        self.renderer = renderer or PageRenderer()
        self.source: BranchSource | None = None

    @property
    def branch(self) -> str:
        return self.config.branch

    def resolve(self) -> WorkingCopy:
        """Check out (or create) the publish branch in a fresh working copy.

        Raises:
            BranchResolutionFailed: On any git failure along the way.
        """
        working_copy = self.workspaces.allocate(self.branch, prefix="verdocs-pages-")
        try:
            self.source = self._select_source()
            if self.source is BranchSource.LOCAL:
                self.repo.worktree_add(working_copy.path, self.branch)
            elif self.source is BranchSource.REMOTE:
                remote = self.config.remote
                self.repo.fetch_branch(remote, self.branch)
                self.repo.worktree_add_tracking(working_copy.path, self.branch, f"{remote}/{self.branch}")
            else:
                self._create_orphan(working_copy)
        except GitCommandError as exc:
            raise BranchResolutionFailed(
                self.branch,
                f"Could not resolve publish branch {self.branch!r}: {exc.message}",
                cause=exc,
            ) from exc

        working_copy.attached = True
        working_copy.commit = self.repo.head_commit(cwd=working_copy.path)
        logger.info(
            "branch.resolved",
            branch=self.branch,
            source=self.source.value,
            path=str(working_copy.path),
        )
        return working_copy

    def _select_source(self) -> BranchSource:
        if self.repo.has_local_branch(self.branch):
            return BranchSource.LOCAL
        remote = self.config.remote
        if remote and self.repo.has_remote(remote) and self.repo.has_remote_branch(remote, self.branch):
            return BranchSource.REMOTE
        return BranchSource.ORPHAN

    def _create_orphan(self, working_copy: WorkingCopy) -> None:
        """Start ``branch`` with no history and one placeholder commit."""
        path = working_copy.path
        self.repo.worktree_add_detached(path)
        working_copy.attached = True
        self.repo.checkout_orphan(self.branch, cwd=path)
        self.repo.remove_all(cwd=path)

        site_config = self.config.site_config
        if site_config and self.config.seed_site_config:
            (path / site_config).write_text(self.renderer.render_site_config(), encoding="utf-8")
            self.repo.add_paths([site_config], cwd=path)

        self.repo.commit(
            self.config.format_initial_commit_message(),
            cwd=path,
            allow_empty=True,
        )
        logger.info("branch.orphan_created", branch=self.branch)


__all__ = ["BranchSource", "PublishBranchResolver"]
