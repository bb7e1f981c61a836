# src/pipeline/stages/ai_sequence.py — v1
"""ai_sequence: construction sequence from the reasoning service.

Runs the generate -> validate -> refine loop over every model element.
Deep runs (which have parsed the BOQ and documents by now) send an enriched
context; other runs send the project and element summary only.
"""

from __future__ import annotations

import logging

from buildcheck.pipeline.plugin_kit.base_stage import BaseStage
from buildcheck.pipeline.plugin_kit.models import StageContext, StageOutput
from buildcheck.sequencing.context import assemble_enriched_context
from buildcheck.sequencing.generator import SequenceGenerator
from buildcheck.sequencing.loop import RefinementLoop
from buildcheck.sequencing.refiner import SequenceRefiner
from buildcheck.sequencing.validator import SequenceValidator

logger = logging.getLogger(__name__)


class AISequenceStage(BaseStage):

    @property
    def name(self) -> str:
        return "ai_sequence"

    @property
    def requires(self) -> tuple[str, ...]:
        return ("model_analyses", "boq", "document_texts")

    @property
    def uses_llm(self) -> bool:
        return True

    async def execute(self, ctx: StageContext) -> StageOutput:
        analyses = ctx.artifact("model_analyses", [])
        if not analyses:
            return StageOutput.skip("no model analyses")
        if ctx.llm is None:
            return StageOutput.skip("no reasoning client configured")

        elements = [e for a in analyses for e in a.elements]
        if not elements:
            return StageOutput.skip("models contain no elements")

        context = None
        if ctx.depth == "deep":
            await ctx.report_partial(0.05, "Assembling project context")
            documents = ctx.artifact("document_texts", {})
            context = assemble_enriched_context(
                ctx.project,
                elements,
                ctx.artifact("boq"),
                [f"[{name}]\n{text}" for name, text in documents.items()],
                ctx.settings.prompt_context_chars,
            )

        loop = RefinementLoop(
            SequenceGenerator(ctx.llm, ctx.settings, ctx.call_logger),
            SequenceValidator(ctx.llm, ctx.settings, ctx.call_logger),
            SequenceRefiner(ctx.llm, ctx.settings, ctx.call_logger),
        )
        outcome = await loop.run(
            elements,
            ctx.project,
            depth=ctx.depth,
            context=context,
            cancel=ctx.cancel,
            on_phase=ctx.report_partial,
        )

        sequence = outcome.sequence
        warnings = [f"ai_sequence: {w}" for w in outcome.warnings]
        if sequence.unmapped_elements:
            warnings.append(
                f"ai_sequence: {len(sequence.element_mapping)}/{len(sequence.universe)} "
                f"elements sequenced ({sequence.coverage_percent}% coverage)"
            )
        logger.info(
            "Sequence: %d steps, %d%% coverage, validated=%s, refined=%s",
            len(sequence.steps), sequence.coverage_percent, outcome.validated, outcome.refined,
        )
        return StageOutput(
            artifacts={"sequence": sequence, "validation_findings": outcome.findings},
            warnings=warnings,
            token_usage=outcome.token_usage,
        )
