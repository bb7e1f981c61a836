# src/jobs/base_job_store.py — v1
"""Abstract job store interface."""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Any

from buildcheck.core.models import PipelineOptions
from buildcheck.jobs.models import JobProgressUpdate, PipelineJob


class JobStoreError(Exception):
    """Raised when a job record cannot be created."""


def new_job_id() -> str:
    return f"job_{uuid.uuid4().hex[:16]}"


class BaseJobStore(ABC):
    """Unified interface for job storage backends.

    ``get`` never mutates. Updates to a terminal job and a second terminal
    transition are ignored (and logged), never raised.
    """

    @abstractmethod
    async def create(self, file_names: list[str], options: PipelineOptions) -> PipelineJob:
        """Create a pending job."""

    @abstractmethod
    async def get(self, job_id: str) -> PipelineJob | None:
        """Return a snapshot of the job, or None if unknown or evicted."""

    @abstractmethod
    async def update_progress(self, job_id: str, update: JobProgressUpdate) -> None:
        """Apply a partial update."""

    @abstractmethod
    async def complete(self, job_id: str, result: dict[str, Any]) -> None:
        """Terminate the job successfully with its serialized result."""

    @abstractmethod
    async def fail(self, job_id: str, error: str) -> None:
        """Terminate the job with an error."""

    def close(self) -> None:
        """Release backend resources."""
