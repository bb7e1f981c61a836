# src/pipeline/runner.py — v2
"""Job runner: drive one pipeline run and mirror it into the job store.

The job turns ``running`` on the first progress update, receives every
progress event as a partial update, and ends with ``complete`` (serialized
result) or ``fail`` (error string). Store write failures never abort the run.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Sequence

from buildcheck.jobs.models import JobProgressUpdate, StageProgress
from buildcheck.pipeline.serializer import serialize_result

if TYPE_CHECKING:
    from buildcheck.core.models import InputFile, PipelineOptions
    from buildcheck.jobs.base_job_store import BaseJobStore
    from buildcheck.llm.cancellation import CancellationToken
    from buildcheck.pipeline.progress import ProgressEvent, ProgressListener
    from buildcheck.pipeline.result import PipelineResult

logger = logging.getLogger(__name__)

AnalyzeFn = Callable[..., Awaitable["PipelineResult"]]


def update_from_event(event: ProgressEvent) -> JobProgressUpdate:
    return JobProgressUpdate(
        current_stage=event.stage,
        progress=event.percent,
        stage_progress={
            event.stage: StageProgress(percent=event.stage_percent, message=event.message)
        },
        stages_completed=list(event.stages_completed),
        warnings=list(event.warnings),
    )


def describe_error(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


async def execute_pipeline_job(
    job_store: BaseJobStore,
    job_id: str,
    files: Sequence[InputFile],
    options: PipelineOptions,
    analyze: AnalyzeFn,
    cancel: CancellationToken | None = None,
) -> PipelineResult | None:
    """Run ``analyze`` for a stored job. Returns None if the job failed.

    ``analyze`` is called as ``analyze(files, options, on_progress=...,
    cancel=..., job_id=...)``.
    """
    await job_store.update_progress(job_id, JobProgressUpdate(progress=0))

    async def on_progress(event: ProgressEvent) -> None:
        await job_store.update_progress(job_id, update_from_event(event))

    listener: ProgressListener = on_progress
    try:
        result = await analyze(
            files, options, on_progress=listener, cancel=cancel, job_id=job_id
        )
    except asyncio.CancelledError:
        await job_store.fail(job_id, "cancelled")
        raise
    except Exception as exc:
        logger.exception("Job %s failed", job_id)
        await job_store.fail(job_id, describe_error(exc))
        return None

    # Background-task warnings arrive after the last progress event
    await job_store.update_progress(
        job_id,
        JobProgressUpdate(
            stages_completed=list(result.stages_completed),
            warnings=list(result.warnings),
        ),
    )
    await job_store.complete(job_id, serialize_result(result, include_source=False))
    logger.info("Job %s completed with %d warnings", job_id, len(result.warnings))
    return result
