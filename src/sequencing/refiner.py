# src/sequencing/refiner.py — v1
"""Refine phase: one corrective pass driven by actionable findings."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Iterable

from buildcheck.llm.json_output import extract_json_object
from buildcheck.llm.models import Message
from buildcheck.llm.retry import with_retry
from buildcheck.sequencing.generator import load_prompt
from buildcheck.sequencing.models import Sequence, ValidationFinding
from buildcheck.sequencing.partition import build_sequence
from buildcheck.sequencing.validator import sequence_payload

if TYPE_CHECKING:
    from buildcheck.config.settings import Settings
    from buildcheck.llm.base_client import BaseLLMClient
    from buildcheck.llm.cancellation import CancellationToken
    from buildcheck.tracking.call_logger import CallLogger

logger = logging.getLogger(__name__)


class RefinementError(Exception):
    """Raised when the refinement response cannot replace the candidate."""


class SequenceRefiner:
    """Produce a replacement sequence from a candidate and its findings."""

    def __init__(
        self,
        llm: BaseLLMClient,
        settings: Settings,
        call_logger: CallLogger | None = None,
    ) -> None:
        self._llm = llm
        self._settings = settings
        self._call_logger = call_logger

    async def refine(
        self,
        sequence: Sequence,
        findings: list[ValidationFinding],
        context: str,
        universe: Iterable[str],
        cancel: CancellationToken | None = None,
    ) -> Sequence:
        """Return the refined sequence, re-partitioned over ``universe``.

        Info-level findings are never sent.

        Raises:
            RefinementError: If the output is malformed or has no steps list.
        """
        actionable = [f for f in findings if f.actionable]
        user = (
            f"=== PROJECT CONTEXT ===\n{context}\n\n"
            f"=== CURRENT SEQUENCE ===\n{sequence_payload(sequence)}\n\n"
            "=== FINDINGS TO ADDRESS ===\n"
            + json.dumps([f.model_dump() for f in actionable], ensure_ascii=False)
        )
        response = await with_retry(
            self._llm.complete,
            [Message(role="user", content=user)],
            system=load_prompt("refine"),
            max_tokens=32768,
            temperature=self._settings.llm_temperature,
            cancel=cancel,
            phase="sequence.refine",
        )
        if self._call_logger is not None:
            self._call_logger.record("sequence.refine", response)

        parsed = extract_json_object(response.content, label="sequence refinement")
        if not parsed.ok:
            raise RefinementError(parsed.warning or "sequence refinement: unparseable output")
        raw_steps = parsed.data.get("steps")
        if not isinstance(raw_steps, list):
            raise RefinementError("sequence refinement: response has no 'steps' list")

        refined = build_sequence(
            raw_steps,
            universe,
            rationale=str(parsed.data.get("rationale") or sequence.rationale),
        )
        refined.model = response.model
        refined.token_usage = response.usage
        logger.info(
            "Refined sequence: %d -> %d steps, %d unmapped",
            len(sequence.steps), len(refined.steps), len(refined.unmapped_elements),
        )
        return refined
