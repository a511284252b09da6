"""
Result models for publish runs.

Pydantic models describing what one ``verdocs publish`` run did, stage by
stage. The CLI prints them as a table or, with ``--json``, via
``model_dump_json()``.

Model hierarchy::

    PublishResult
    ├── stages: list[StageResult]     version, workspace, branch, build,
    │                                 reconcile, commit
    ├── reconcile: ReconcileSummary   latest / is_latest / root changes
    └── commit: CommitSummary         noop or committed, sha, message
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from verdocs.publish.commit import CommitRecord
from verdocs.publish.reconcile import ReconcileOutcome

# ---------------------------------------------------------------------------
# Shared enums
# ---------------------------------------------------------------------------


class OverallStatus(str, Enum):
    """Overall status of a publish run or of one of its stages."""

    PASSED = "PASSED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"
    RUNNING = "RUNNING"
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"


def _now() -> str:
    return datetime.now(UTC).isoformat()


# ---------------------------------------------------------------------------
# Stage results
# ---------------------------------------------------------------------------


class StageResult(BaseModel):
    """Timing and outcome of one pipeline stage."""

    name: str
    status: OverallStatus = OverallStatus.PENDING
    started_at: str | None = None
    completed_at: str | None = None
    duration_seconds: float = 0.0
    detail: str | None = None
    error: str | None = None
    error_category: str | None = None

    def start(self) -> None:
        self.started_at = _now()
        self.status = OverallStatus.RUNNING

    def finish(self, status: OverallStatus, *, error: Exception | None = None) -> None:
        self.completed_at = _now()
        if self.started_at:
            start = datetime.fromisoformat(self.started_at)
            end = datetime.fromisoformat(self.completed_at)
            self.duration_seconds = (end - start).total_seconds()
        self.status = status
        if error is not None:
            self.error = str(error)
            category = getattr(error, "category", None)
            if category is not None:
                self.error_category = category.value


class ReconcileSummary(BaseModel):
    """Serializable view of a ``ReconcileOutcome``."""

    latest: str
    is_latest: bool
    versions: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    custom_docs_copied: bool = False
    landing_page_generated: bool = False

    @classmethod
    def from_outcome(cls, outcome: ReconcileOutcome) -> ReconcileSummary:
        return cls(
            latest=str(outcome.latest),
            is_latest=outcome.is_latest,
            versions=[str(v) for v in outcome.versions],
            removed=list(outcome.removed),
            custom_docs_copied=outcome.custom_docs_copied,
            landing_page_generated=outcome.landing_page_generated,
        )


class CommitSummary(BaseModel):
    status: str
    branch: str
    sha: str | None = None
    message: str | None = None

    @classmethod
    def from_record(cls, record: CommitRecord) -> CommitSummary:
        return cls(
            status=record.status.value,
            branch=record.branch,
            sha=record.sha,
            message=record.message,
        )


# ---------------------------------------------------------------------------
# Run result
# ---------------------------------------------------------------------------


class PublishResult(BaseModel):
    """Result of one publish run."""

    tag: str
    branch: str
    version: str | None = None
    branch_source: str | None = None
    source_commit: str | None = None
    started_at: str = Field(default_factory=_now)
    completed_at: str | None = None
    duration_seconds: float = 0.0
    stages: list[StageResult] = Field(default_factory=list)
    reconcile: ReconcileSummary | None = None
    commit: CommitSummary | None = None
    overall_status: OverallStatus = OverallStatus.PENDING
    error: str | None = None
    summary: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)

    def stage(self, name: str) -> StageResult | None:
        for stage in self.stages:
            if stage.name == name:
                return stage
        return None

    def add_stage(self, name: str) -> StageResult:
        stage = StageResult(name=name)
        self.stages.append(stage)
        return stage

    @property
    def committed(self) -> bool:
        return self.commit is not None and self.commit.status == "committed"

    def mark_complete(self, status: OverallStatus | None = None) -> None:
        """Finalize run: compute duration, status and summary."""
        self.completed_at = _now()
        if self.started_at and self.completed_at:
            start = datetime.fromisoformat(self.started_at)
            end = datetime.fromisoformat(self.completed_at)
            self.duration_seconds = (end - start).total_seconds()

        if status:
            self.overall_status = status
        elif any(s.status == OverallStatus.FAILED for s in self.stages):
            self.overall_status = OverallStatus.FAILED
        else:
            self.overall_status = OverallStatus.PASSED

        if self.overall_status != OverallStatus.PASSED:
            failed = next((s for s in self.stages if s.status == OverallStatus.FAILED), None)
            where = f" at {failed.name}" if failed else ""
            self.summary = f"{self.tag}: {self.overall_status.value.lower()}{where}"
        elif self.commit is None:
            self.summary = f"{self.version}: done"
        elif self.committed:
            self.summary = f"{self.version}: committed {(self.commit.sha or '')[:12]} to {self.branch}"
        else:
            self.summary = f"{self.version}: no changes on {self.branch}"


__all__ = [
    "OverallStatus",
    "StageResult",
    "ReconcileSummary",
    "CommitSummary",
    "PublishResult",
]
