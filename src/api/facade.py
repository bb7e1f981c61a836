# src/api/facade.py — v2
"""Public API facade: single entry point for project analysis.

Usage:
    from buildcheck.api.context import AppContext
    from buildcheck.api.facade import PipelineService

    service = PipelineService(AppContext())
    result = await service.analyze(files, options)        # synchronous run
    job = await service.submit(files, options)            # background job
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Sequence

from buildcheck.cache.fingerprint import compute_fingerprint, files_summary
from buildcheck.core.models import PipelineOptions
from buildcheck.llm.cancellation import CancellationToken
from buildcheck.pipeline.errors import PipelineInputError
from buildcheck.pipeline.progress import ProgressEvent
from buildcheck.pipeline.runner import execute_pipeline_job

if TYPE_CHECKING:
    from buildcheck.api.context import AppContext
    from buildcheck.core.models import InputFile
    from buildcheck.jobs.models import PipelineJob
    from buildcheck.pipeline.progress import ProgressListener
    from buildcheck.pipeline.result import PipelineResult

logger = logging.getLogger(__name__)


class PipelineService:
    """Runs analyses synchronously or as tracked background jobs.

    Args:
        context: Shared collaborators (settings, stores, client, registry).
    """

    def __init__(self, context: AppContext) -> None:
        self.context = context
        self._tasks: set[asyncio.Task] = set()
        self._tokens: dict[str, CancellationToken] = {}

    async def analyze(
        self,
        files: Sequence[InputFile],
        options: PipelineOptions | None = None,
        on_progress: ProgressListener | None = None,
        cancel: CancellationToken | None = None,
        job_id: str | None = None,
        use_cache: bool = True,
    ) -> PipelineResult:
        """Analyze a submission end-to-end, reusing a cached result if any.

        The flow is:
          1. Fingerprint the submission (names, sizes, times and options)
          2. Return the cached result on a hit
          3. Otherwise run every stage through the orchestrator
          4. Store the new result (oldest entries are evicted)

        Args:
            files: Uploaded files.
            options: Run options. Defaults apply when None.
            on_progress: Receives a ProgressEvent per stage transition.
            cancel: Token that aborts in-flight reasoning calls.
            job_id: Bound into the log context when running as a job.
            use_cache: Set False to force a fresh run.

        Returns:
            The assembled PipelineResult.

        Raises:
            PipelineInputError: If no files were submitted.
        """
        if not files:
            raise PipelineInputError("No files submitted")
        options = options or PipelineOptions()
        cache = self.context.result_cache if use_cache else None
        fingerprint = compute_fingerprint(files, options)

        if cache is not None:
            hit = await cache.get(fingerprint)
            if hit is not None:
                logger.info("Cache hit for %s", fingerprint[:12])
                if on_progress is not None:
                    await on_progress(
                        ProgressEvent(
                            stage="cache",
                            percent=100,
                            message="Loaded cached result",
                            stage_percent=100,
                            stages_completed=tuple(hit.stages_completed),
                            warnings=tuple(hit.warnings),
                        )
                    )
                return hit

        result = await self.context.orchestrator().run(
            files, options, on_progress=on_progress, cancel=cancel, job_id=job_id
        )
        if cache is not None:
            await cache.put(fingerprint, result, files_summary(files))
        return result

    async def submit(
        self,
        files: Sequence[InputFile],
        options: PipelineOptions | None = None,
    ) -> PipelineJob:
        """Create a job and start it in the background.

        Raises:
            JobStoreError: If the job record cannot be created.
        """
        options = options or PipelineOptions()
        store = self.context.job_store
        job = await store.create([f.name for f in files], options)
        token = CancellationToken()
        self._tokens[job.id] = token

        task = asyncio.create_task(
            execute_pipeline_job(store, job.id, list(files), options, self.analyze, token),
            name=f"pipeline-{job.id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(lambda _t, job_id=job.id: self._tokens.pop(job_id, None))
        logger.info("Submitted job %s (%d files)", job.id, len(files))
        return job

    async def get_job(self, job_id: str) -> PipelineJob | None:
        return await self.context.job_store.get(job_id)

    def cancel(self, job_id: str) -> bool:
        """Signal a running job to stop. Returns False if it is not running here."""
        token = self._tokens.get(job_id)
        if token is None:
            return False
        token.cancel("cancelled by user")
        return True

    async def join(self) -> None:
        """Wait for every submitted job to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self, cancel_pending: bool = False) -> None:
        if cancel_pending:
            for token in self._tokens.values():
                token.cancel("shutdown")
        await self.join()
        await self.context.reset()
