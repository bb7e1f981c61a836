# src/tracking/cost_calculator.py — v1
"""Estimated USD cost of reasoning-service calls."""

from __future__ import annotations

from collections import defaultdict

from buildcheck.tracking.models import LLMCallRecord, ModelPricing

# Prices per 1M tokens
DEFAULT_PRICING: dict[str, ModelPricing] = {
    "claude-opus-4-20250514": ModelPricing(
        model="claude-opus-4-20250514",
        input_price_per_1m=15.0, output_price_per_1m=75.0,
    ),
    "claude-sonnet-4-20250514": ModelPricing(
        model="claude-sonnet-4-20250514",
        input_price_per_1m=3.0, output_price_per_1m=15.0,
    ),
    "claude-haiku-4-5-20251001": ModelPricing(
        model="claude-haiku-4-5-20251001",
        input_price_per_1m=0.80, output_price_per_1m=4.0,
    ),
}


def compute_call_cost(
    record: LLMCallRecord, pricing: dict[str, ModelPricing] | None = None
) -> float:
    """Estimated cost of one call; 0.0 for unknown models."""
    p = (pricing or DEFAULT_PRICING).get(record.model)
    if p is None:
        return 0.0
    return (record.input_tokens * p.input_price_per_1m
            + record.output_tokens * p.output_price_per_1m) / 1_000_000


def compute_total_cost(
    records: list[LLMCallRecord],
    pricing: dict[str, ModelPricing] | None = None,
) -> float:
    return sum(compute_call_cost(r, pricing) for r in records)


def cost_by_phase(
    records: list[LLMCallRecord],
    pricing: dict[str, ModelPricing] | None = None,
) -> dict[str, float]:
    """Estimated cost grouped by top-level phase ("sequence.validate" -> "sequence")."""
    totals: dict[str, float] = defaultdict(float)
    for r in records:
        totals[r.phase.split(".", 1)[0]] += compute_call_cost(r, pricing)
    return dict(totals)
