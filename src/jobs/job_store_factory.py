# src/jobs/job_store_factory.py — v1
"""Pick the job store backend from configuration.

The durable backend is used when JOB_STORE_URL is set, the in-process one
otherwise. Callers construct the store once (see api.context.AppContext).
"""

from __future__ import annotations

from buildcheck.config.settings import Settings
from buildcheck.jobs.base_job_store import BaseJobStore


def create_job_store(settings: Settings | None = None) -> BaseJobStore:
    """Instantiate the configured job store."""
    if settings is not None and settings.job_store_path is not None:
        from buildcheck.jobs.sqlite_store import SqliteJobStore

        return SqliteJobStore(settings.job_store_path)

    from buildcheck.jobs.memory_store import InMemoryJobStore

    max_jobs = 100 if settings is None else settings.job_store_max_jobs
    return InMemoryJobStore(max_jobs=max_jobs)
