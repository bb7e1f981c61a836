# src/config/stages.py — v1
"""Declarative stage table: identifiers, progress weights and orderings.

Weights are shared by every job and sum to 100. The declared order is the
default run order; deep runs pull the tabular and document parsing stages
in front of the sequencing stage so it sees the richest context.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Literal, Mapping

StageId = Literal[
    "classify",
    "parse_ifc",
    "ai_sequence",
    "parse_boq",
    "parse_pdf",
    "analyze",
    "ai_estimate",
    "estimate",
    "reconcile",
    "schedule",
    "export",
]

AnalysisDepth = Literal["quick", "standard", "deep"]

DECLARED_ORDER: tuple[str, ...] = (
    "classify",
    "parse_ifc",
    "ai_sequence",
    "parse_boq",
    "parse_pdf",
    "analyze",
    "ai_estimate",
    "estimate",
    "reconcile",
    "schedule",
    "export",
)

STAGE_WEIGHTS: Mapping[str, int] = MappingProxyType({
    "classify": 5,
    "parse_ifc": 15,
    "ai_sequence": 10,
    "parse_boq": 10,
    "parse_pdf": 15,
    "analyze": 8,
    "ai_estimate": 12,
    "estimate": 5,
    "reconcile": 3,
    "schedule": 7,
    "export": 10,
})

# Stages moved ahead of the sequencing stage in deep runs, in this order.
DEEP_PULLED_FORWARD: tuple[str, ...] = ("parse_boq", "parse_pdf")
SEQUENCING_STAGE = "ai_sequence"

assert sum(STAGE_WEIGHTS.values()) == 100
assert set(STAGE_WEIGHTS) == set(DECLARED_ORDER)


def stage_order(depth: str = "standard") -> list[str]:
    """Return the stage run order for a depth mode.

    Only ``deep`` differs from the declared order: the pulled-forward stages
    are placed immediately before the sequencing stage and every other stage
    keeps its relative position.
    """
    if depth != "deep":
        return list(DECLARED_ORDER)

    order = [s for s in DECLARED_ORDER if s not in DEEP_PULLED_FORWARD]
    idx = order.index(SEQUENCING_STAGE)
    return order[:idx] + list(DEEP_PULLED_FORWARD) + order[idx:]
