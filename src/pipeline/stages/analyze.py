# src/pipeline/stages/analyze.py — v1
"""analyze: regulation rules over the project record.

Deep runs also ask the reasoning service to review the findings and flag
likely false positives.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from buildcheck.analysis.rules import Rule, evaluate_rules, load_rules
from buildcheck.core.models import ComplianceReport, ReviewedFinding
from buildcheck.pipeline.plugin_kit.base_stage import BaseStage
from buildcheck.pipeline.plugin_kit.models import StageContext, StageOutput
from buildcheck.pipeline.stages.common import ask_json, to_payload

if TYPE_CHECKING:
    from buildcheck.config.settings import Settings

logger = logging.getLogger(__name__)


def parse_reviews(raw: Any, known_ids: set[str]) -> list[ReviewedFinding]:
    reviews: list[ReviewedFinding] = []
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict):
            continue
        finding_id = str(item.get("findingId") or item.get("finding_id") or "")
        if finding_id not in known_ids:
            continue
        try:
            reviews.append(
                ReviewedFinding(
                    finding_id=finding_id,
                    verified=bool(item.get("verified", True)),
                    relevance=item.get("relevance") or "medium",
                    note=str(item.get("note") or ""),
                )
            )
        except ValidationError:
            logger.debug("Dropping malformed review for %s", finding_id)
    return reviews


class AnalyzeStage(BaseStage):
    """Compliance check. The rule set is loaded on first use."""

    def __init__(self, settings: Settings) -> None:
        self._rules_path = settings.rules_path
        self._rules: list[Rule] | None = None

    @property
    def name(self) -> str:
        return "analyze"

    @property
    def requires(self) -> tuple[str, ...]:
        return ("document_texts",)

    @property
    def rules(self) -> list[Rule]:
        if self._rules is None:
            self._rules = load_rules(self._rules_path)
        return self._rules

    async def execute(self, ctx: StageContext) -> StageOutput:
        if not ctx.options.include_compliance:
            return StageOutput.skip("compliance disabled")

        report = evaluate_rules(ctx.project, self.rules)
        logger.info(
            "Compliance: %d rules, %d failing", report.rules_evaluated, len(report.failing)
        )
        out = StageOutput(artifacts={"compliance": report})

        if ctx.depth == "deep" and ctx.llm is not None and report.failing:
            await ctx.report_partial(0.5, "Reviewing regulatory findings")
            await self._review(ctx, report, out)
        return out

    async def _review(self, ctx: StageContext, report: ComplianceReport, out: StageOutput) -> None:
        documents = ctx.artifact("document_texts", {})
        payload = to_payload(
            {
                "project": ctx.project.model_dump(mode="json"),
                "findings": [f.model_dump(mode="json") for f in report.failing],
                "documentExcerpts": {n: t[:2000] for n, t in documents.items()},
            },
            ctx.settings.prompt_context_chars,
        )
        try:
            parsed, usage = await ask_json(
                ctx, "compliance.review", "regulatory_review", payload,
                default={"reviewedFindings": []},
            )
        except Exception as e:
            out.warnings.append(f"analyze: regulatory review unavailable: {e}")
            return

        out.token_usage = usage
        if parsed.warning:
            out.warnings.append(f"analyze: {parsed.warning}")
        reviews = parse_reviews(
            parsed.data.get("reviewedFindings"), {f.id for f in report.failing}
        )
        out.artifacts["regulatory_review"] = reviews
        suspect = sum(1 for r in reviews if not r.verified)
        if suspect:
            out.warnings.append(
                f"analyze: {suspect}/{len(reviews)} findings flagged as possible false positives"
            )
