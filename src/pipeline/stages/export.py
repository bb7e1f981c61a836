# src/pipeline/stages/export.py — v1
"""export: budget workbook, MS Project XML and compliance workbook.

Each export is independent; one failing becomes a warning and the others
still render.
"""

from __future__ import annotations

import logging
from typing import Callable

from buildcheck.analysis.msproject import export_msproject_xml
from buildcheck.analysis.workbook import XLSX_MEDIA_TYPE, budget_workbook, compliance_workbook
from buildcheck.core.models import ExportFile
from buildcheck.pipeline.plugin_kit.base_stage import BaseStage
from buildcheck.pipeline.plugin_kit.models import StageContext, StageOutput

logger = logging.getLogger(__name__)


class ExportStage(BaseStage):

    @property
    def name(self) -> str:
        return "export"

    @property
    def requires(self) -> tuple[str, ...]:
        return ("boq", "match_report", "schedule", "compliance", "regulatory_review")

    async def execute(self, ctx: StageContext) -> StageOutput:
        boq = ctx.artifact("boq")
        schedule = ctx.artifact("schedule")
        compliance = ctx.artifact("compliance")

        jobs: list[tuple[str, str, str, Callable[[], bytes | str]]] = []
        if boq is not None and boq.articles:
            jobs.append((
                "budget_xlsx", "budget.xlsx", XLSX_MEDIA_TYPE,
                lambda: budget_workbook(ctx.project, boq, ctx.artifact("match_report"), schedule),
            ))
        if schedule is not None and schedule.tasks:
            jobs.append((
                "msproject_xml", "schedule.xml", "application/xml",
                lambda: export_msproject_xml(schedule),
            ))
        if compliance is not None:
            jobs.append((
                "compliance_xlsx", "compliance.xlsx", XLSX_MEDIA_TYPE,
                lambda: compliance_workbook(
                    ctx.project, compliance, ctx.artifact("regulatory_review", [])
                ),
            ))
        if not jobs:
            return StageOutput.skip("nothing to export")

        out = StageOutput()
        exports: dict[str, ExportFile] = {}
        for i, (key, file_name, media_type, render) in enumerate(jobs):
            await ctx.report_partial(i / len(jobs), f"Rendering {file_name}")
            try:
                content = render()
            except Exception as e:
                out.warnings.append(f"export: {file_name} failed: {e}")
                logger.warning("Export %s failed", file_name, exc_info=True)
                continue
            exports[key] = ExportFile(name=file_name, media_type=media_type, content=content)
        out.artifacts["exports"] = exports
        return out
