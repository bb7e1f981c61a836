# src/pipeline/stages/estimate.py — v1
"""estimate: bottom-up pricing of the bill of quantities.

Catalog matching first; deep runs then ask the reasoning service to price
what the catalog could not.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from buildcheck.analysis.price_catalog import PriceCatalog, match_boq
from buildcheck.core.models import MatchReport, PriceMatch
from buildcheck.pipeline.plugin_kit.base_stage import BaseStage
from buildcheck.pipeline.plugin_kit.models import StageContext, StageOutput
from buildcheck.pipeline.stages.common import as_float, ask_json, to_payload

if TYPE_CHECKING:
    from buildcheck.config.settings import Settings

logger = logging.getLogger(__name__)


class EstimateStage(BaseStage):
    """Price matching. The catalog is loaded on first use."""

    def __init__(self, settings: Settings) -> None:
        self._catalog_path = settings.price_catalog_path
        self._threshold = settings.price_match_threshold
        self._catalog: PriceCatalog | None = None

    @property
    def name(self) -> str:
        return "estimate"

    @property
    def requires(self) -> tuple[str, ...]:
        return ("boq",)

    @property
    def catalog(self) -> PriceCatalog:
        if self._catalog is None:
            self._catalog = PriceCatalog.load(self._catalog_path)
        return self._catalog

    async def execute(self, ctx: StageContext) -> StageOutput:
        if not ctx.options.include_costs:
            return StageOutput.skip("costs disabled")
        boq = ctx.artifact("boq")
        if boq is None or not boq.articles:
            return StageOutput.skip("no bill of quantities")

        report = match_boq(boq, self.catalog, self._threshold)
        out = StageOutput(artifacts={"match_report": report})

        if ctx.depth == "deep" and report.unmatched and ctx.llm is not None:
            await ctx.report_partial(0.6, f"Pricing {len(report.unmatched)} unmatched articles")
            await self._price_unmatched(ctx, report, out)

        if report.unmatched:
            out.warnings.append(
                f"estimate: {len(report.unmatched)} articles without a price "
                f"({report.coverage_percent}% coverage)"
            )
        return out

    async def _price_unmatched(self, ctx: StageContext, report: MatchReport, out: StageOutput) -> None:
        payload = to_payload(
            {
                "project": {
                    "buildingType": ctx.project.building_type,
                    "location": ctx.project.location,
                    "grossFloorArea": ctx.project.gross_floor_area,
                    "isRehabilitation": ctx.project.is_rehabilitation,
                },
                "articles": [u.model_dump() for u in report.unmatched],
            },
            ctx.settings.prompt_context_chars,
        )
        try:
            parsed, usage = await ask_json(
                ctx, "estimate.price_unmatched", "price_unmatched", payload,
                default={"estimates": []},
            )
        except Exception as e:
            out.warnings.append(f"estimate: AI pricing unavailable: {e}")
            return

        out.token_usage = usage
        if parsed.warning:
            out.warnings.append(f"estimate: {parsed.warning}")
        pending = {u.article_code: u for u in report.unmatched}
        priced: list[PriceMatch] = []
        for item in parsed.data.get("estimates") or []:
            if not isinstance(item, dict):
                continue
            article = pending.pop(str(item.get("articleCode") or ""), None)
            price = as_float(item.get("unitPrice"))
            if article is None or price <= 0:
                continue
            priced.append(
                PriceMatch(
                    article_code=article.article_code,
                    catalog_code="AI",
                    description=article.description,
                    unit=article.unit,
                    quantity=article.quantity,
                    unit_price=price,
                    confidence=min(1.0, max(0.0, as_float(item.get("confidence"), 0.5))),
                    source="ai",
                )
            )
        report.matches.extend(priced)
        report.unmatched = list(pending.values())
        logger.info("AI priced %d unmatched articles", len(priced))
