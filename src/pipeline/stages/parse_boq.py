# src/pipeline/stages/parse_boq.py — v1
"""parse_boq: bill of quantities plus the optional MS Project schedule.

The BOQ comes from uploaded CSV/XLSX files, else from model element counts,
else from the imported schedule's tasks. Only the first valid schedule XML
is imported.
"""

from __future__ import annotations

import logging

from buildcheck.analysis.boq_reader import BoqFormatError, boq_from_model, read_boq
from buildcheck.analysis.msproject import ScheduleImportError, is_msproject_xml, parse_msproject_xml
from buildcheck.core.models import BillOfQuantities, BoqArticle, ProjectSchedule
from buildcheck.pipeline.plugin_kit.base_stage import BaseStage
from buildcheck.pipeline.plugin_kit.models import StageContext, StageOutput

logger = logging.getLogger(__name__)


def boq_from_schedule(schedule: ProjectSchedule, file_name: str) -> BillOfQuantities:
    return BillOfQuantities(
        source="schedule",
        source_files=[file_name],
        articles=[
            BoqArticle(
                code=f"SCH.{task.uid}",
                description=task.name,
                unit="ls",
                quantity=1.0,
                chapter=task.phase or task.name,
            )
            for task in schedule.tasks
        ],
    )


class ParseBoqStage(BaseStage):

    @property
    def name(self) -> str:
        return "parse_boq"

    @property
    def requires(self) -> tuple[str, ...]:
        return ("model_analyses",)

    async def execute(self, ctx: StageContext) -> StageOutput:
        out = StageOutput()
        boq = await self._read_uploaded(ctx, out.warnings)
        if boq is None and ctx.artifact("model_analyses"):
            boq = boq_from_model(ctx.artifact("model_analyses"))
            logger.info("Derived %d BOQ articles from model counts", len(boq.articles))

        schedule_name, schedule = await self._import_schedule(ctx, out.warnings)
        if schedule is not None:
            out.artifacts["imported_schedule"] = schedule
            if schedule.project_name and not ctx.project.name:
                ctx.project.name = schedule.project_name
                out.project = ctx.project
            if boq is None:
                boq = boq_from_schedule(schedule, schedule_name)

        if boq is None and schedule is None:
            if not out.warnings:
                return StageOutput.skip("no BOQ, model or schedule input")
            out.skipped = True
            out.skip_reason = "no usable BOQ or schedule input"
            return out

        if boq is not None:
            out.artifacts["boq"] = boq
        return out

    async def _read_uploaded(self, ctx: StageContext, warnings: list[str]) -> BillOfQuantities | None:
        files = ctx.files.boq
        articles: list[BoqArticle] = []
        used: list[str] = []
        for i, f in enumerate(files):
            await ctx.report_partial(0.8 * i / len(files), f"Reading {f.name}")
            try:
                rows = read_boq(f)
            except BoqFormatError as e:
                warnings.append(f"parse_boq: {e}")
                continue
            articles.extend(rows)
            used.append(f.name)
        if not articles:
            return None
        return BillOfQuantities(source="upload", source_files=used, articles=articles)

    async def _import_schedule(
        self, ctx: StageContext, warnings: list[str]
    ) -> tuple[str, ProjectSchedule | None]:
        files = ctx.files.schedule
        if not files:
            return "", None
        await ctx.report_partial(0.9, "Importing MS Project schedule")
        for idx, f in enumerate(files):
            text = f.text()
            if not is_msproject_xml(text):
                warnings.append(f"parse_boq: {f.name} is not a valid MS Project XML file")
                continue
            try:
                schedule = parse_msproject_xml(text)
            except ScheduleImportError as e:
                warnings.append(f"parse_boq: {f.name}: {e}")
                continue
            if len(files) > idx + 1:
                warnings.append(
                    f"parse_boq: several XML files submitted, only {f.name} was imported"
                )
            logger.info("Imported %d tasks from %s", len(schedule.tasks), f.name)
            return f.name, schedule
        return "", None
