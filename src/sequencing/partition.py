# src/sequencing/partition.py — v1
"""Build a Sequence from raw model output over a fixed element universe.

Each element id is claimed by at most one step. Ids outside the universe and
ids already claimed by an earlier step are dropped; whatever no step claims
is reported as unmapped, in universe order.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from buildcheck.sequencing.models import (
    CONSTRUCTION_PHASES,
    DEFAULT_PHASE,
    Sequence,
    SequenceStep,
)

logger = logging.getLogger(__name__)


def _as_str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None and str(v)]


def _as_duration(value: Any) -> float | None:
    try:
        duration = float(value)
    except (TypeError, ValueError):
        return None
    return duration if duration > 0 else None


def coerce_phase(value: Any) -> str:
    phase = str(value or "").strip().lower()
    return phase if phase in CONSTRUCTION_PHASES else DEFAULT_PHASE


def build_sequence(
    raw_steps: Iterable[Any],
    universe: Iterable[str],
    rationale: str = "",
) -> Sequence:
    """Normalize raw step dicts and enforce single assignment.

    Args:
        raw_steps: Step objects as returned by the reasoning service.
        universe: All element ids that may be claimed.
        rationale: Overall rationale to attach.
    """
    ordered_universe = list(dict.fromkeys(universe))
    known = set(ordered_universe)
    claimed: set[str] = set()
    steps: list[SequenceStep] = []
    dropped = 0

    for i, raw in enumerate(raw_steps):
        if not isinstance(raw, dict):
            continue
        element_ids: list[str] = []
        for eid in _as_str_list(raw.get("elementIds", raw.get("element_ids"))):
            if eid not in known or eid in claimed:
                dropped += 1
                continue
            claimed.add(eid)
            element_ids.append(eid)

        steps.append(SequenceStep(
            step_id=str(raw.get("stepId") or raw.get("step_id") or f"S{i + 1:03d}"),
            name=str(raw.get("name") or f"Step {i + 1}"),
            phase=coerce_phase(raw.get("phase")),
            element_ids=element_ids,
            storey=str(raw["storey"]) if raw.get("storey") else None,
            predecessors=_as_str_list(raw.get("predecessors")),
            rationale=str(raw.get("rationale") or ""),
            estimated_duration_days=_as_duration(
                raw.get("estimatedDurationDays", raw.get("estimated_duration_days"))
            ),
        ))

    if dropped:
        logger.debug("Dropped %d unknown or duplicate element claims", dropped)

    return Sequence(
        steps=steps,
        unmapped_elements=[eid for eid in ordered_universe if eid not in claimed],
        rationale=rationale,
    )
