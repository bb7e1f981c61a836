# src/pipeline/stages/ai_estimate.py — v1
"""ai_estimate: top-down cost estimate from the reasoning service.

When no bill of quantities exists yet, the work packages become one.
"""

from __future__ import annotations

import logging
from typing import Any

from buildcheck.core.models import AIEstimate, BillOfQuantities, BoqArticle, WorkPackage
from buildcheck.pipeline.plugin_kit.base_stage import BaseStage
from buildcheck.pipeline.plugin_kit.models import StageContext, StageOutput
from buildcheck.pipeline.stages.common import as_float, ask_json
from buildcheck.sequencing.context import cap, summarize_boq, summarize_project

logger = logging.getLogger(__name__)


def parse_estimate(data: dict[str, Any]) -> AIEstimate:
    packages: list[WorkPackage] = []
    for i, raw in enumerate(data.get("workPackages") or [], start=1):
        if not isinstance(raw, dict):
            continue
        packages.append(
            WorkPackage(
                code=str(raw.get("code") or f"WP{i:02d}"),
                description=str(raw.get("description") or raw.get("name") or ""),
                chapter=str(raw.get("chapter") or ""),
                estimate_min=as_float(raw.get("min")),
                estimate_most_likely=as_float(raw.get("mostLikely")),
                estimate_max=as_float(raw.get("max")),
            )
        )

    totals = data.get("totalEstimate") if isinstance(data.get("totalEstimate"), dict) else {}
    return AIEstimate(
        work_packages=packages,
        total_min=as_float(totals.get("min")) or sum(p.estimate_min for p in packages),
        total_most_likely=as_float(totals.get("mostLikely"))
        or sum(p.estimate_most_likely for p in packages),
        total_max=as_float(totals.get("max")) or sum(p.estimate_max for p in packages),
        assumptions=[str(a) for a in data.get("assumptions") or []],
        risks=[str(r) for r in data.get("risks") or []],
    )


def boq_from_estimate(estimate: AIEstimate) -> BillOfQuantities:
    return BillOfQuantities(
        source="ai_estimate",
        articles=[
            BoqArticle(
                code=p.code,
                description=p.description,
                unit="ls",
                quantity=1.0,
                unit_price=p.estimate_most_likely,
                chapter=p.chapter or "General",
            )
            for p in estimate.work_packages
        ],
    )


class AIEstimateStage(BaseStage):

    @property
    def name(self) -> str:
        return "ai_estimate"

    @property
    def requires(self) -> tuple[str, ...]:
        return ("model_analyses", "boq", "document_texts")

    @property
    def uses_llm(self) -> bool:
        return True

    async def execute(self, ctx: StageContext) -> StageOutput:
        if not ctx.options.include_ai_estimate:
            return StageOutput.skip("AI estimate disabled")
        if ctx.llm is None:
            return StageOutput.skip("no reasoning client configured")

        limit = ctx.settings.prompt_context_chars
        sections = [f"=== PROJECT ===\n{summarize_project(ctx.project)}"]
        counts: dict[str, int] = {}
        for analysis in ctx.artifact("model_analyses", []):
            for entity_type, n in analysis.counts_by_type().items():
                counts[entity_type] = counts.get(entity_type, 0) + n
        if counts:
            sections.append(
                "=== MODEL ===\n" + "\n".join(f"{k}: {v}" for k, v in sorted(counts.items()))
            )
        boq = ctx.artifact("boq")
        if boq is not None:
            sections.append(f"=== BILL OF QUANTITIES ===\n{summarize_boq(boq, limit // 2)}")
        documents = ctx.artifact("document_texts", {})
        if documents:
            sections.append("=== DOCUMENTS ===\n" + cap("\n---\n".join(documents.values()), limit // 4))

        parsed, usage = await ask_json(
            ctx, "estimate.ai", "estimate", cap("\n\n".join(sections), limit), default={}
        )
        out = StageOutput(token_usage=usage)
        if parsed.warning:
            out.warnings.append(f"ai_estimate: {parsed.warning}")

        estimate = parse_estimate(parsed.data)
        if not estimate.work_packages and not estimate.total_most_likely:
            out.warnings.append("ai_estimate: response contained no usable estimate")
            return out

        logger.info(
            "AI estimate: %d work packages, %.0f-%.0f (most likely %.0f)",
            len(estimate.work_packages), estimate.total_min, estimate.total_max,
            estimate.total_most_likely,
        )
        out.artifacts["ai_estimate"] = estimate
        if boq is None and estimate.work_packages:
            out.artifacts["boq"] = boq_from_estimate(estimate)
        return out
