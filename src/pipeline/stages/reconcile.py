# src/pipeline/stages/reconcile.py — v1
"""reconcile: AI total vs catalog-priced total.

Also starts the background review of the price matches. That review runs
while schedule and export proceed; the orchestrator joins it before the
run returns.
"""

from __future__ import annotations

import logging
from typing import Any

from buildcheck.core.models import AIEstimate, AIReview, MatchReport, MatchReview, Reconciliation
from buildcheck.pipeline.plugin_kit.base_stage import BaseStage
from buildcheck.pipeline.plugin_kit.models import StageContext, StageOutput
from buildcheck.pipeline.stages.common import ask_json, to_payload

logger = logging.getLogger(__name__)

ALIGNED_MAX_PERCENT = 15
MINOR_MAX_PERCENT = 40


def divergence_percent(a: float, b: float) -> float:
    """Absolute difference relative to the mean of the two totals."""
    if a == 0 and b == 0:
        return 0.0
    mean = (a + b) / 2
    if mean == 0:
        return 100.0
    return round(abs(a - b) / mean * 100)


def reconcile_totals(estimate: AIEstimate, report: MatchReport) -> Reconciliation:
    ai_total = estimate.total_most_likely
    algorithmic = report.total_estimated_cost
    divergence = divergence_percent(ai_total, algorithmic)
    if divergence <= ALIGNED_MAX_PERCENT:
        verdict = "aligned"
    elif divergence <= MINOR_MAX_PERCENT:
        verdict = "minor_divergence"
    else:
        verdict = "major_divergence"
    return Reconciliation(
        ai_most_likely=ai_total,
        algorithmic_total=algorithmic,
        divergence_percent=divergence,
        verdict=verdict,
    )


def parse_review(data: dict[str, Any], known_codes: set[str]) -> AIReview:
    reviews = []
    for item in data.get("matchReviews") or []:
        if not isinstance(item, dict):
            continue
        code = str(item.get("articleCode") or "")
        verdict = item.get("verdict")
        if code not in known_codes or verdict not in ("correct", "questionable", "wrong"):
            continue
        reviews.append(MatchReview(article_code=code, verdict=verdict, note=str(item.get("note") or "")))
    return AIReview(match_reviews=reviews, summary=str(data.get("summary") or ""))


class ReconcileStage(BaseStage):

    @property
    def name(self) -> str:
        return "reconcile"

    @property
    def requires(self) -> tuple[str, ...]:
        return ("ai_estimate", "match_report")

    async def execute(self, ctx: StageContext) -> StageOutput:
        estimate = ctx.artifact("ai_estimate")
        report = ctx.artifact("match_report")
        if estimate is None or report is None:
            return StageOutput.skip("needs both an AI estimate and a price match report")

        reconciliation = reconcile_totals(estimate, report)
        logger.info(
            "Reconciliation: AI %.0f vs matched %.0f (%s%%, %s)",
            reconciliation.ai_most_likely, reconciliation.algorithmic_total,
            reconciliation.divergence_percent, reconciliation.verdict,
        )
        out = StageOutput(artifacts={"reconciliation": reconciliation})
        if reconciliation.verdict == "major_divergence":
            out.warnings.append(
                f"reconcile: major divergence ({reconciliation.divergence_percent:g}%) "
                "between AI and catalog estimates"
            )

        if ctx.options.include_ai_estimate and ctx.llm is not None and report.matches:
            out.background["ai_review"] = review_matches(ctx, estimate, report, reconciliation)
        return out


async def review_matches(
    ctx: StageContext,
    estimate: AIEstimate,
    report: MatchReport,
    reconciliation: Reconciliation,
) -> AIReview:
    """Background task body: AI audit of the price matches."""
    payload = to_payload(
        {
            "aiEstimate": estimate.model_dump(mode="json"),
            "matches": [m.model_dump(mode="json") for m in report.matches],
            "reconciliation": reconciliation.model_dump(mode="json"),
        },
        ctx.settings.prompt_context_chars,
    )
    parsed, _ = await ask_json(
        ctx, "reconcile.review", "match_review", payload, default={"matchReviews": []}
    )
    review = parse_review(parsed.data, {m.article_code for m in report.matches})
    logger.info("Match review: %d matches reviewed", len(review.match_reviews))
    return review
