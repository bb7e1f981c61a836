# src/jobs/models.py — v1
"""Job records tracked for polling clients.

A job is created ``pending``, becomes ``running`` on its first progress
update, and ends exactly once in ``completed`` or ``failed``. Terminal jobs
ignore further updates.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from buildcheck.core.models import PipelineOptions

JobStatus = Literal["pending", "running", "completed", "failed"]
TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "failed"})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StageProgress(BaseModel):
    """Sub-progress of one stage."""

    percent: int = 0
    message: str = ""


class JobProgressUpdate(BaseModel):
    """Partial update: only the supplied (non-None) fields change.

    List fields carry the full current snapshot; a snapshot shorter than
    what is stored is ignored so the lists only grow.
    """

    current_stage: str | None = None
    progress: int | None = None
    stage_progress: dict[str, StageProgress] | None = None
    stages_completed: list[str] | None = None
    warnings: list[str] | None = None


class PipelineJob(BaseModel):
    id: str
    status: JobStatus = "pending"
    current_stage: str | None = None
    progress: int = 0
    stage_progress: dict[str, StageProgress] = Field(default_factory=dict)
    stages_completed: list[str] = Field(default_factory=list)
    file_names: list[str] = Field(default_factory=list)
    options: PipelineOptions = Field(default_factory=PipelineOptions)
    result: dict[str, Any] | None = None
    error: str | None = None
    warnings: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def apply_update(self, update: JobProgressUpdate, now: datetime | None = None) -> bool:
        """Merge a partial update in place. Returns False for terminal jobs."""
        if self.is_terminal:
            return False
        now = now or utcnow()
        if self.status == "pending":
            self.status = "running"
        if self.started_at is None:
            self.started_at = now
        if update.current_stage is not None:
            self.current_stage = update.current_stage
        if update.progress is not None:
            self.progress = max(self.progress, min(100, update.progress))
        if update.stage_progress:
            self.stage_progress.update(update.stage_progress)
        if update.stages_completed is not None and len(update.stages_completed) > len(
            self.stages_completed
        ):
            self.stages_completed = list(update.stages_completed)
        if update.warnings is not None and len(update.warnings) > len(self.warnings):
            self.warnings = list(update.warnings)
        self.updated_at = now
        return True

    def mark_completed(self, result: dict[str, Any], now: datetime | None = None) -> bool:
        if self.is_terminal:
            return False
        now = now or utcnow()
        self.status = "completed"
        self.result = result
        self.progress = 100
        self.current_stage = None
        self.started_at = self.started_at or now
        self.completed_at = now
        self.updated_at = now
        return True

    def mark_failed(self, error: str, now: datetime | None = None) -> bool:
        if self.is_terminal:
            return False
        now = now or utcnow()
        self.status = "failed"
        self.error = error
        self.started_at = self.started_at or now
        self.completed_at = now
        self.updated_at = now
        return True
