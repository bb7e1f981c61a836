# src/tracking/models.py — v1
"""Tracking models: per-call records and model pricing."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class LLMCallRecord(BaseModel):
    """One reasoning-service call made during a run."""

    call_id: str
    timestamp: datetime
    phase: str
    provider: str
    model: str
    input_tokens: int
    output_tokens: int
    total_tokens: int
    latency_ms: int
    status: Literal["success", "failed", "cancelled"] = "success"
    estimated_cost_usd: float = 0.0


class ModelPricing(BaseModel):
    """Per-model pricing in USD per million tokens."""

    model: str
    input_price_per_1m: float
    output_price_per_1m: float
