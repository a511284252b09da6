"""Stage and commit the publish working copy.

Stability: stable
Since: 0.1.0
Dependencies: git (external)
Doc-Types: API_REFERENCE
Tags: git, commit, idempotent

Everything in the working copy is staged (additions, modifications and
deletions). If the index then matches the branch tip the run ends as a
no-op, which is a normal outcome: re-publishing an unchanged tag must not
create empty commits. The commit stays local; pushing is left to the
caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from verdocs.core.errors import CommitFailed, GitCommandError
from verdocs.core.logging import get_logger
from verdocs.publish.git import GitRepository
from verdocs.publish.version import VersionLabel
from verdocs.publish.workspace import WorkingCopy

logger = get_logger(__name__)


class CommitStatus(str, Enum):
    NOOP = "noop"
    COMMITTED = "committed"


@dataclass(frozen=True)
class CommitRecord:
    """Outcome of the commit step; produced once per run."""

    status: CommitStatus
    version: str
    branch: str
    sha: str | None = None
    message: str | None = None

    @property
    def is_noop(self) -> bool:
        return self.status is CommitStatus.NOOP


class CommitManager:
    """Commit the publish working copy only when it differs from the tip."""

    def __init__(self, repo: GitRepository, message_template: str = "Add {version} docs"):
        self.repo = repo
        self.message_template = message_template

    def message_for(self, version: VersionLabel) -> str:
        return self.message_template.format(version=str(version))

    def commit(self, publish: WorkingCopy, version: VersionLabel) -> CommitRecord:
        """Stage everything and commit if anything changed.

        Raises:
            CommitFailed: If staging, diffing or committing fails.
        """
        try:
            self.repo.add_all(cwd=publish.path)
            if not self.repo.has_staged_changes(cwd=publish.path):
                logger.info("commit.noop", version=str(version), branch=publish.ref)
                return CommitRecord(
                    status=CommitStatus.NOOP,
                    version=str(version),
                    branch=publish.ref,
                    sha=self.repo.head_commit(cwd=publish.path),
                )
            message = self.message_for(version)
            sha = self.repo.commit(message, cwd=publish.path)
        except GitCommandError as exc:
            raise CommitFailed(
                f"Could not commit {version} docs: {exc.message}", cause=exc
            ).with_context(branch=publish.ref) from exc

        logger.info("commit.created", version=str(version), branch=publish.ref, sha=sha)
        return CommitRecord(
            status=CommitStatus.COMMITTED,
            version=str(version),
            branch=publish.ref,
            sha=sha,
            message=message,
        )


__all__ = ["CommitStatus", "CommitRecord", "CommitManager"]
