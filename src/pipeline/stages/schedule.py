# src/pipeline/stages/schedule.py — v1
"""schedule: construction schedule and element -> task mapping."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from buildcheck.analysis.scheduler import (
    map_elements_to_tasks,
    schedule_from_boq,
    schedule_from_sequence,
)
from buildcheck.pipeline.plugin_kit.base_stage import BaseStage
from buildcheck.pipeline.plugin_kit.models import StageContext, StageOutput

if TYPE_CHECKING:
    from buildcheck.config.settings import Settings

logger = logging.getLogger(__name__)


class ScheduleStage(BaseStage):
    """Imported schedule if any, else one built from the sequence or the BOQ."""

    def __init__(self, settings: Settings) -> None:
        self._start_date = settings.schedule_start_date
        self._daily_output = settings.schedule_daily_output

    @property
    def name(self) -> str:
        return "schedule"

    @property
    def requires(self) -> tuple[str, ...]:
        return ("imported_schedule", "sequence", "boq", "match_report", "model_analyses")

    async def execute(self, ctx: StageContext) -> StageOutput:
        if not ctx.options.include_schedule:
            return StageOutput.skip("schedule disabled")

        start = self._start_date or date.today()
        sequence = ctx.artifact("sequence")
        boq = ctx.artifact("boq")
        name = ctx.project.name

        if ctx.artifact("imported_schedule") is not None:
            schedule = ctx.artifact("imported_schedule")
        elif sequence is not None and sequence.steps:
            schedule = schedule_from_sequence(sequence, start, name)
        elif boq is not None and boq.articles:
            schedule = schedule_from_boq(
                boq, ctx.artifact("match_report"), start, self._daily_output, name
            )
        else:
            return StageOutput.skip("no imported schedule, sequence or BOQ")

        logger.info(
            "Schedule (%s): %d tasks, %d days",
            schedule.source, len(schedule.tasks), schedule.total_duration_days,
        )
        artifacts: dict[str, object] = {"schedule": schedule}
        analyses = ctx.artifact("model_analyses", [])
        if analyses:
            await ctx.report_partial(0.8, "Mapping model elements to tasks")
            artifacts["element_mapping"] = map_elements_to_tasks(analyses, schedule)
        return StageOutput(artifacts=artifacts)
