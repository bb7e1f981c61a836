# src/sequencing/validator.py — v1
"""Validate phase: independent review of a candidate sequence."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from buildcheck.llm.json_output import extract_json_object
from buildcheck.llm.models import Message
from buildcheck.llm.retry import with_retry
from buildcheck.sequencing.generator import load_prompt
from buildcheck.sequencing.models import (
    SEVERITY_RANK,
    Sequence,
    ValidationFinding,
    ValidationReport,
    sort_findings,
)

if TYPE_CHECKING:
    from buildcheck.config.settings import Settings
    from buildcheck.llm.base_client import BaseLLMClient
    from buildcheck.llm.cancellation import CancellationToken
    from buildcheck.tracking.call_logger import CallLogger

logger = logging.getLogger(__name__)


def sequence_payload(sequence: Sequence) -> str:
    """Compact JSON of the steps, in the shape the prompts describe."""
    return json.dumps({
        "rationale": sequence.rationale,
        "steps": [
            {
                "stepId": s.step_id,
                "name": s.name,
                "phase": s.phase,
                "elementIds": s.element_ids,
                "storey": s.storey,
                "predecessors": s.predecessors,
                "rationale": s.rationale,
                "estimatedDurationDays": s.estimated_duration_days,
            }
            for s in sequence.steps
        ],
        "unassignedElementIds": sequence.unmapped_elements,
    }, ensure_ascii=False)


def _build_finding(raw: Any) -> ValidationFinding | None:
    if not isinstance(raw, dict):
        return None
    severity = str(raw.get("severity", "info")).lower()
    if severity not in SEVERITY_RANK:
        severity = "info"
    try:
        return ValidationFinding(
            severity=severity,
            category=str(raw.get("category") or "general"),
            description=str(raw.get("description") or ""),
            affected_steps=[str(s) for s in raw.get("affectedSteps", raw.get("affected_steps")) or []],
            suggestion=str(raw.get("suggestion") or ""),
        )
    except (TypeError, ValidationError) as exc:
        logger.debug("Skipping malformed finding %r: %s", raw, exc)
        return None


class SequenceValidator:
    """Review a candidate sequence against full project context."""

    def __init__(
        self,
        llm: BaseLLMClient,
        settings: Settings,
        call_logger: CallLogger | None = None,
    ) -> None:
        self._llm = llm
        self._settings = settings
        self._call_logger = call_logger

    async def validate(
        self,
        sequence: Sequence,
        context: str,
        cancel: CancellationToken | None = None,
    ) -> ValidationReport:
        """Findings ordered error, warning, info.

        Unparseable output yields no findings plus a warning.
        """
        user = (
            f"=== PROJECT CONTEXT ===\n{context}\n\n"
            f"=== PROPOSED SEQUENCE ===\n{sequence_payload(sequence)}"
        )
        response = await with_retry(
            self._llm.complete,
            [Message(role="user", content=user)],
            system=load_prompt("validate"),
            max_tokens=8192,
            temperature=0.0,
            cancel=cancel,
            phase="sequence.validate",
        )
        if self._call_logger is not None:
            self._call_logger.record("sequence.validate", response)

        parsed = extract_json_object(response.content, default={"findings": []}, label="sequence validation")
        raw_findings = parsed.data.get("findings")
        findings = [
            f for f in (_build_finding(r) for r in (raw_findings if isinstance(raw_findings, list) else []))
            if f is not None
        ]
        return ValidationReport(
            findings=sort_findings(findings),
            token_usage=response.usage,
            warning=parsed.warning,
        )
