"""Publish pipeline: version labels, working copies, build, reconcile, commit.

Configuration lives in ``verdocs.config``; it depends on this package for
label validation, so nothing here imports it at runtime.
"""

from verdocs.publish.branch import BranchSource, PublishBranchResolver
from verdocs.publish.builder import CommandGenerator, CommandInstaller, DocumentationBuilder
from verdocs.publish.commit import CommitManager, CommitRecord, CommitStatus
from verdocs.publish.git import GitRepository
from verdocs.publish.orchestrator import PublishOrchestrator
from verdocs.publish.pages import PageRenderer
from verdocs.publish.reconcile import (
    PublishTree,
    ReconcileOutcome,
    VersionSetReconciler,
    published_versions,
)
from verdocs.publish.results import OverallStatus, PublishResult, StageResult
from verdocs.publish.version import VersionLabel, is_latest, latest_of, parse_tag, sort_labels
from verdocs.publish.workspace import WorkingCopy, WorkspaceManager

__all__ = [
    "BranchSource",
    "CommandGenerator",
    "CommandInstaller",
    "CommitManager",
    "CommitRecord",
    "CommitStatus",
    "DocumentationBuilder",
    "GitRepository",
    "OverallStatus",
    "PageRenderer",
    "PublishBranchResolver",
    "PublishOrchestrator",
    "PublishResult",
    "PublishTree",
    "ReconcileOutcome",
    "StageResult",
    "VersionLabel",
    "VersionSetReconciler",
    "WorkingCopy",
    "WorkspaceManager",
    "is_latest",
    "latest_of",
    "parse_tag",
    "published_versions",
    "sort_labels",
]
