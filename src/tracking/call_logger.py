# src/tracking/call_logger.py — v1
"""Reasoning-service call log for token accounting."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

from buildcheck.llm.models import LLMResponse, TokenUsage
from buildcheck.tracking.cost_calculator import compute_call_cost
from buildcheck.tracking.models import LLMCallRecord

logger = logging.getLogger(__name__)


class CallLogger:
    """Accumulates call records during a pipeline run."""

    def __init__(self) -> None:
        self._records: list[LLMCallRecord] = []

    def record(self, phase: str, response: LLMResponse) -> LLMCallRecord:
        """Record a successful call.

        Args:
            phase: Sub-pipeline phase (e.g. "sequence.generate").
            response: Response carrying token usage.
        """
        record = LLMCallRecord(
            call_id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
            phase=phase,
            provider=response.provider,
            model=response.model,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
            total_tokens=response.input_tokens + response.output_tokens,
            latency_ms=response.latency_ms,
        )
        record.estimated_cost_usd = compute_call_cost(record)
        self._records.append(record)
        logger.debug(
            "%s: %d in / %d out tokens", phase, record.input_tokens, record.output_tokens
        )
        return record

    @property
    def records(self) -> list[LLMCallRecord]:
        return list(self._records)

    @property
    def total_calls(self) -> int:
        return len(self._records)

    def usage(self, phase_prefix: str = "") -> TokenUsage:
        """Summed usage, optionally restricted to phases with a prefix."""
        total = TokenUsage()
        for r in self._records:
            if r.phase.startswith(phase_prefix):
                total = total + TokenUsage(input=r.input_tokens, output=r.output_tokens)
        return total

    def save(self, path: Path) -> None:
        """Save all records to a JSON Lines file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            for record in self._records:
                f.write(json.dumps(record.model_dump(), default=str) + "\n")
