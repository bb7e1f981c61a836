# src/jobs/sqlite_store.py — v1
"""Durable job store on SQLite (JOB_STORE_URL=sqlite:///path/jobs.db).

One row per job; the stage progress map, completed stages, warnings,
options and result are JSON columns. Only ``create`` raises: every other
write failure is logged, since the caller awaiting a run holds the
authoritative result and the store only serves pollers.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from buildcheck.core.models import PipelineOptions
from buildcheck.jobs.base_job_store import BaseJobStore, JobStoreError, new_job_id
from buildcheck.jobs.models import JobProgressUpdate, PipelineJob, utcnow

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS pipeline_jobs (
    id TEXT PRIMARY KEY,
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK (status IN ('pending', 'running', 'completed', 'failed')),
    current_stage TEXT,
    progress INTEGER NOT NULL DEFAULT 0,
    stage_progress TEXT NOT NULL DEFAULT '{}',
    stages_completed TEXT NOT NULL DEFAULT '[]',
    file_names TEXT NOT NULL DEFAULT '[]',
    options TEXT NOT NULL DEFAULT '{}',
    result TEXT,
    error TEXT,
    warnings TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    started_at TEXT,
    completed_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_pipeline_jobs_created_at ON pipeline_jobs(created_at);
"""

_UPDATE_PROGRESS = """
UPDATE pipeline_jobs SET
    status = CASE WHEN status = 'pending' THEN 'running' ELSE status END,
    current_stage = COALESCE(:current_stage, current_stage),
    progress = MAX(progress, COALESCE(:progress, progress)),
    stage_progress = json_patch(stage_progress, :stage_progress),
    stages_completed = CASE
        WHEN json_array_length(:stages_completed) > json_array_length(stages_completed)
        THEN :stages_completed ELSE stages_completed END,
    warnings = CASE
        WHEN json_array_length(:warnings) > json_array_length(warnings)
        THEN :warnings ELSE warnings END,
    started_at = COALESCE(started_at, :now),
    updated_at = :now
WHERE id = :id AND status NOT IN ('completed', 'failed')
"""

_COMPLETE = """
UPDATE pipeline_jobs SET
    status = 'completed', result = :result, progress = 100, current_stage = NULL,
    started_at = COALESCE(started_at, :now), completed_at = :now, updated_at = :now
WHERE id = :id AND status NOT IN ('completed', 'failed')
"""

_FAIL = """
UPDATE pipeline_jobs SET
    status = 'failed', error = :error,
    started_at = COALESCE(started_at, :now), completed_at = :now, updated_at = :now
WHERE id = :id AND status NOT IN ('completed', 'failed')
"""


class SqliteJobStore(BaseJobStore):
    """SQLite-backed job store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def create(self, file_names: list[str], options: PipelineOptions) -> PipelineJob:
        job = PipelineJob(id=new_job_id(), file_names=list(file_names), options=options)
        try:
            self._conn.execute(
                """INSERT INTO pipeline_jobs
                   (id, status, file_names, options, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    job.id,
                    job.status,
                    json.dumps(job.file_names),
                    job.options.model_dump_json(),
                    job.created_at.isoformat(),
                    job.updated_at.isoformat(),
                ),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise JobStoreError(f"Cannot create job record: {e}") from e
        return job

    async def get(self, job_id: str) -> PipelineJob | None:
        row = self._conn.execute(
            "SELECT * FROM pipeline_jobs WHERE id = ?", (job_id,)
        ).fetchone()
        return _row_to_job(row) if row is not None else None

    async def update_progress(self, job_id: str, update: JobProgressUpdate) -> None:
        stage_progress = {
            k: v.model_dump() for k, v in (update.stage_progress or {}).items()
        }
        params = {
            "id": job_id,
            "current_stage": update.current_stage,
            "progress": min(100, update.progress) if update.progress is not None else None,
            "stage_progress": json.dumps(stage_progress),
            "stages_completed": json.dumps(update.stages_completed or []),
            "warnings": json.dumps(update.warnings or []),
            "now": utcnow().isoformat(),
        }
        self._write(_UPDATE_PROGRESS, params, f"update job {job_id}")

    async def complete(self, job_id: str, result: dict[str, Any]) -> None:
        params = {"id": job_id, "result": json.dumps(result), "now": utcnow().isoformat()}
        if self._write(_COMPLETE, params, f"complete job {job_id}") == 0:
            logger.warning("Job %s unknown or already terminal, completion ignored", job_id)

    async def fail(self, job_id: str, error: str) -> None:
        params = {"id": job_id, "error": error, "now": utcnow().isoformat()}
        if self._write(_FAIL, params, f"fail job {job_id}") == 0:
            logger.warning("Job %s unknown or already terminal, failure ignored", job_id)

    def close(self) -> None:
        self._conn.close()

    def _write(self, sql: str, params: dict[str, Any], label: str) -> int | None:
        try:
            cursor = self._conn.execute(sql, params)
            self._conn.commit()
        except sqlite3.Error as e:
            logger.error("Job store write failed (%s): %s", label, e)
            return None
        return cursor.rowcount


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _row_to_job(row: sqlite3.Row) -> PipelineJob:
    return PipelineJob(
        id=row["id"],
        status=row["status"],
        current_stage=row["current_stage"],
        progress=row["progress"],
        stage_progress=json.loads(row["stage_progress"]),
        stages_completed=json.loads(row["stages_completed"]),
        file_names=json.loads(row["file_names"]),
        options=PipelineOptions.model_validate_json(row["options"]),
        result=json.loads(row["result"]) if row["result"] else None,
        error=row["error"],
        warnings=json.loads(row["warnings"]),
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
        started_at=_parse_ts(row["started_at"]),
        completed_at=_parse_ts(row["completed_at"]),
    )
