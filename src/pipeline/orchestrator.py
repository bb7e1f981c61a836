# src/pipeline/orchestrator.py — v3
"""Pipeline orchestrator: runs the stage table against one submission.

Stages run strictly one after another in the depth-dependent order from
config.stages. Each runs inside a failure boundary: an exception becomes a
``"<stage>: <message>"`` warning and the run moves on. Every stage is
marked complete (ran, skipped or failed), so a finished run reports 100%.

The single exception to sequential execution is background work a stage
returns (the reconcile stage's price review): it is spawned as a task,
stored in the run state, and joined exactly once before the result is
built. If the run is aborted it is cancelled and awaited, never left behind.
Artifacts are checked against their result field types when a stage
returns them; one that does not fit is dropped with a warning.
"""

from __future__ import annotations

import asyncio
import logging
import time
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Sequence

from pydantic import TypeAdapter, ValidationError

from buildcheck.config.stages import stage_order
from buildcheck.core.classifier import classify_files
from buildcheck.core.models import InputFile, PipelineOptions, ProjectRecord
from buildcheck.logging.context import set_run_context, set_stage_context
from buildcheck.pipeline.errors import PipelineInputError
from buildcheck.pipeline.plugin_kit.models import StageContext, StageOutput
from buildcheck.pipeline.progress import ProgressListener, ProgressReporter
from buildcheck.pipeline.registry import RegistryError
from buildcheck.pipeline.result import PipelineResult
from buildcheck.pipeline.state import RunState
from buildcheck.tracking.call_logger import CallLogger

if TYPE_CHECKING:
    from buildcheck.config.settings import Settings
    from buildcheck.llm.base_client import BaseLLMClient
    from buildcheck.llm.cancellation import CancellationToken
    from buildcheck.pipeline.registry import StageRegistry

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def _artifact_adapter(name: str) -> TypeAdapter[Any]:
    return TypeAdapter(PipelineResult.model_fields[name].annotation)


def check_artifact(name: str, value: Any) -> Any:
    """Validate an artifact against its result field type.

    Names the result does not declare pass through unchanged.

    Raises:
        ValidationError: If the value does not fit the field.
    """
    if value is None or name not in PipelineResult.model_fields:
        return value
    return _artifact_adapter(name).validate_python(value)


def _invalid_artifact_warning(owner: str, name: str, exc: ValidationError) -> str:
    first = exc.errors()[0]["msg"] if exc.errors() else str(exc)
    return f"{owner}: invalid {name} artifact dropped ({first})"


class PipelineOrchestrator:
    """Top-level driver for one analysis run.

    Args:
        settings: Application settings.
        registry: Stage strategies keyed by stage id.
        llm_client: Reasoning-service client, or None when not configured
            (reasoning stages then skip).
    """

    def __init__(
        self,
        settings: Settings,
        registry: StageRegistry,
        llm_client: BaseLLMClient | None = None,
    ) -> None:
        self._settings = settings
        self._registry = registry
        self._llm_client = llm_client

    async def run(
        self,
        files: Sequence[InputFile],
        options: PipelineOptions | None = None,
        on_progress: ProgressListener | None = None,
        cancel: CancellationToken | None = None,
        call_logger: CallLogger | None = None,
        job_id: str | None = None,
    ) -> PipelineResult:
        """Run every stage and return the assembled result.

        Raises:
            PipelineInputError: If no files were submitted.
        """
        options = options or PipelineOptions()
        if not files:
            raise PipelineInputError("No files submitted")

        start = time.monotonic()
        call_logger = call_logger or CallLogger()
        state = RunState(project=ProjectRecord(**(options.existing_project or {})))
        set_run_context(state.run_id, job_id=job_id)
        reporter = ProgressReporter(listener=on_progress, warnings=state.warnings)
        order = stage_order(options.analysis_depth)

        logger.info(
            "Pipeline start: %d files, depth=%s, order=%s",
            len(files),
            options.analysis_depth,
            ",".join(order),
        )

        try:
            for stage_id in order:
                set_stage_context(stage_id)
                await reporter.report(stage_id, f"Starting {stage_id}")
                if stage_id == "classify":
                    self._classify(state, files)
                else:
                    await self._run_stage(
                        stage_id, state, options, reporter, cancel, call_logger
                    )
                reporter.complete_stage(stage_id)
                await reporter.report(stage_id, f"Finished {stage_id}")
            set_stage_context(None)
            await self._join_background(state)
        finally:
            set_stage_context(None)
            pending = [task for task in state.background.values() if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
                logger.info("Cancelled %d background tasks", len(pending))

        result = self._build_result(state, options, reporter.completed, call_logger)
        result.processing_time_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Pipeline complete: %d stages, %d warnings, %d tokens, %dms",
            len(result.stages_completed),
            len(result.warnings),
            result.token_usage.total,
            result.processing_time_ms,
        )
        return result

    def _classify(self, state: RunState, files: Sequence[InputFile]) -> None:
        state.files = classify_files(files)
        groups = state.files.names()
        logger.info(
            "Classified: %s",
            ", ".join(f"{k}={len(v)}" for k, v in groups.items()),
        )
        if not state.files.has_typed_files:
            state.warnings.append(
                "classify: no recognized files (expected .ifc, .xlsx/.xls/.csv, .pdf or .xml)"
            )

    async def _run_stage(
        self,
        stage_id: str,
        state: RunState,
        options: PipelineOptions,
        reporter: ProgressReporter,
        cancel: CancellationToken | None,
        call_logger: CallLogger,
    ) -> None:
        async def report_partial(fraction: float, message: str) -> None:
            await reporter.report_partial(stage_id, fraction, message)

        started = time.monotonic()
        try:
            stage = self._registry.get_or_raise(stage_id)
            ctx = StageContext(
                stage_id=stage_id,
                project=state.project.model_copy(deep=True),
                files=state.files,
                options=options,
                settings=self._settings,
                artifacts=state.artifacts_for(stage.requires),
                llm=self._llm_client,
                call_logger=call_logger,
                cancel=cancel,
                report_partial=report_partial,
            )
            output = await stage.execute(ctx)
            output.artifacts = self._checked_artifacts(stage_id, output)
        except RegistryError as exc:
            state.warnings.append(f"{stage_id}: {exc}")
            logger.error("Stage %s unavailable: %s", stage_id, exc)
            return
        except Exception as exc:
            state.warnings.append(f"{stage_id}: {exc}")
            logger.warning("Stage %s failed: %s", stage_id, exc, exc_info=True)
            return

        if output.skipped:
            logger.info("Stage %s skipped: %s", stage_id, output.skip_reason)
        state.apply(stage_id, output)
        for name, coro in output.background.items():
            if name in state.background:
                coro.close()
                state.warnings.append(
                    f"{stage_id}: background task {name} already started, duplicate ignored"
                )
                logger.warning("Duplicate background task %s from %s ignored", name, stage_id)
                continue
            state.background[name] = asyncio.create_task(coro, name=f"{stage_id}:{name}")
            logger.debug("Background task %s started", name)
        logger.info(
            "Stage %s done in %dms (%d artifacts, %d warnings)",
            stage_id,
            int((time.monotonic() - started) * 1000),
            len(output.artifacts),
            len(output.warnings),
        )

    async def _join_background(self, state: RunState) -> None:
        for name, task in state.background.items():
            try:
                value: Any = await task
            except Exception as exc:
                state.warnings.append(f"{name}: {exc}")
                logger.warning("Background task %s failed: %s", name, exc)
                continue
            try:
                value = check_artifact(name, value)
            except ValidationError as exc:
                state.warnings.append(_invalid_artifact_warning(name, name, exc))
                logger.warning("Background task %s returned an invalid artifact", name)
                continue
            if value is not None:
                state.artifacts[name] = value

    @staticmethod
    def _checked_artifacts(stage_id: str, output: StageOutput) -> dict[str, Any]:
        checked: dict[str, Any] = {}
        for name, value in output.artifacts.items():
            try:
                checked[name] = check_artifact(name, value)
            except ValidationError as exc:
                output.warnings.append(_invalid_artifact_warning(stage_id, name, exc))
                logger.warning("Stage %s returned an invalid %s artifact", stage_id, name)
        return checked

    @staticmethod
    def _build_result(
        state: RunState,
        options: PipelineOptions,
        completed: list[str],
        call_logger: CallLogger,
    ) -> PipelineResult:
        fields = {
            name: value
            for name, value in state.artifacts.items()
            if name in PipelineResult.model_fields and value is not None
        }
        return PipelineResult(
            project=state.project,
            classified=state.files.names(),
            analysis_depth=options.analysis_depth,
            warnings=list(state.warnings),
            stages_completed=list(completed),
            token_usage=call_logger.usage(),
            **fields,
        )
