# src/jobs/memory_store.py — v1
"""In-process job store: bounded, lost on restart."""

from __future__ import annotations

import logging
from typing import Any

from buildcheck.core.models import PipelineOptions
from buildcheck.jobs.base_job_store import BaseJobStore, new_job_id
from buildcheck.jobs.models import JobProgressUpdate, PipelineJob

logger = logging.getLogger(__name__)

DEFAULT_MAX_JOBS = 100


class InMemoryJobStore(BaseJobStore):
    """Insertion-ordered dict; the oldest job is evicted at capacity."""

    def __init__(self, max_jobs: int = DEFAULT_MAX_JOBS) -> None:
        self._max_jobs = max_jobs
        self._jobs: dict[str, PipelineJob] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    async def create(self, file_names: list[str], options: PipelineOptions) -> PipelineJob:
        while len(self._jobs) >= self._max_jobs:
            oldest = next(iter(self._jobs))
            del self._jobs[oldest]
            logger.debug("Evicted job %s (capacity %d)", oldest, self._max_jobs)
        job = PipelineJob(
            id=new_job_id(),
            file_names=list(file_names),
            options=options.model_copy(deep=True),
        )
        self._jobs[job.id] = job
        return job.model_copy(deep=True)

    async def get(self, job_id: str) -> PipelineJob | None:
        job = self._jobs.get(job_id)
        return job.model_copy(deep=True) if job is not None else None

    async def update_progress(self, job_id: str, update: JobProgressUpdate) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            logger.debug("Progress for unknown job %s dropped", job_id)
            return
        job.apply_update(update)

    async def complete(self, job_id: str, result: dict[str, Any]) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            logger.warning("Cannot complete unknown job %s", job_id)
            return
        if not job.mark_completed(result):
            logger.warning("Job %s already %s, completion ignored", job_id, job.status)

    async def fail(self, job_id: str, error: str) -> None:
        job = self._jobs.get(job_id)
        if job is None:
            logger.warning("Cannot fail unknown job %s", job_id)
            return
        if not job.mark_failed(error):
            logger.warning("Job %s already %s, failure ignored", job_id, job.status)
