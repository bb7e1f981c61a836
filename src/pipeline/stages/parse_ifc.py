# src/pipeline/stages/parse_ifc.py — v1
"""parse_ifc: scan model files for elements and storeys."""

from __future__ import annotations

import logging

from buildcheck.analysis.ifc_scanner import IfcParseError, project_fields_from_models, scan_ifc
from buildcheck.core.models import ModelAnalysis
from buildcheck.pipeline.plugin_kit.base_stage import BaseStage
from buildcheck.pipeline.plugin_kit.models import StageContext, StageOutput

logger = logging.getLogger(__name__)


class ParseIfcStage(BaseStage):
    """Scan each .ifc file and enrich the project with what the model knows."""

    @property
    def name(self) -> str:
        return "parse_ifc"

    @property
    def description(self) -> str:
        return "Extract building elements and storeys from IFC models"

    async def execute(self, ctx: StageContext) -> StageOutput:
        model_files = ctx.files.model
        if not model_files:
            return StageOutput.skip("no model files")

        analyses: list[ModelAnalysis] = []
        warnings: list[str] = []
        for i, f in enumerate(model_files):
            await ctx.report_partial(i / len(model_files), f"Scanning {f.name}")
            try:
                analysis = scan_ifc(f.name, f.text())
            except IfcParseError as e:
                warnings.append(f"parse_ifc: {e}")
                continue
            logger.info(
                "%s: %d elements on %d storeys (%s)",
                f.name, len(analysis.elements), len(analysis.storeys),
                analysis.schema_version or "unknown schema",
            )
            analyses.append(analysis)

        if not analyses:
            return StageOutput(warnings=warnings, skipped=True, skip_reason="no readable model")

        project = ctx.project
        changed = project.apply_fields(project_fields_from_models(analyses))
        logger.debug("Model enriched project fields: %s", changed)
        return StageOutput(
            project=project if changed else None,
            artifacts={"model_analyses": analyses, "source_model": model_files[0].content},
            warnings=warnings,
        )
