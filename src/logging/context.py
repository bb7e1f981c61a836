# src/logging/context.py — v1
"""Contextual logging support: attach job_id, run_id and stage to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set per pipeline run; asyncio tasks inherit a copy at creation time.
_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    job_id: str | None = None
    run_id: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        job_id=_job_id.get(),
        run_id=_run_id.get(),
        stage=_stage.get(),
    )


def set_run_context(run_id: str, job_id: str | None = None) -> None:
    """Set run-level context (called once per pipeline run)."""
    _run_id.set(run_id)
    if job_id is not None:
        _job_id.set(job_id)


def set_stage_context(stage: str | None) -> None:
    """Set the stage currently executing."""
    _stage.set(stage)


def clear_context() -> None:
    """Reset all context variables."""
    _job_id.set(None)
    _run_id.set(None)
    _stage.set(None)
