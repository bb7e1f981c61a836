# src/sequencing/models.py — v1
"""Construction sequence artifacts and validation findings."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from buildcheck.llm.models import TokenUsage

CONSTRUCTION_PHASES: tuple[str, ...] = (
    "site_setup",
    "demolition",
    "earthworks",
    "foundations",
    "structure",
    "external_walls",
    "roof",
    "waterproofing",
    "external_frames",
    "rough_in_plumbing",
    "rough_in_electrical",
    "rough_in_hvac",
    "rough_in_gas",
    "rough_in_telecom",
    "internal_walls",
    "insulation",
    "external_finishes",
    "internal_finishes",
    "flooring",
    "ceilings",
    "carpentry",
    "plumbing_fixtures",
    "electrical_fixtures",
    "painting",
    "metalwork",
    "fire_safety",
    "elevators",
    "external_works",
    "testing",
    "cleanup",
)
DEFAULT_PHASE = "site_setup"

Severity = Literal["error", "warning", "info"]
SEVERITY_RANK: dict[str, int] = {"error": 0, "warning": 1, "info": 2}


class SequenceStep(BaseModel):
    """One atomic unit of the construction plan."""

    step_id: str
    name: str
    phase: str = DEFAULT_PHASE
    element_ids: list[str] = Field(default_factory=list)
    storey: str | None = None
    predecessors: list[str] = Field(default_factory=list)
    rationale: str = ""
    estimated_duration_days: float | None = None


class Sequence(BaseModel):
    """Ordered steps plus the elements no step claimed.

    ``unmapped_elements`` and the union of all ``element_ids`` partition the
    element universe the sequence was built over.
    """

    steps: list[SequenceStep] = Field(default_factory=list)
    unmapped_elements: list[str] = Field(default_factory=list)
    rationale: str = ""
    model: str = ""
    token_usage: TokenUsage = Field(default_factory=TokenUsage)

    @property
    def element_mapping(self) -> dict[str, str]:
        """Element id -> claiming step id."""
        return {eid: step.step_id for step in self.steps for eid in step.element_ids}

    @property
    def universe(self) -> list[str]:
        """Every element id the sequence accounts for, claimed first."""
        claimed = [eid for step in self.steps for eid in step.element_ids]
        return claimed + list(self.unmapped_elements)

    @property
    def coverage_percent(self) -> int:
        total = len(self.universe)
        return round(len(self.element_mapping) / total * 100) if total else 0


class ValidationFinding(BaseModel):
    """An issue raised against a candidate sequence."""

    severity: Severity = "info"
    category: str = "general"
    description: str = ""
    affected_steps: list[str] = Field(default_factory=list)
    suggestion: str = ""

    @property
    def actionable(self) -> bool:
        return self.severity != "info"


def sort_findings(findings: list[ValidationFinding]) -> list[ValidationFinding]:
    """Errors first, then warnings, then info; stable within a severity."""
    return sorted(findings, key=lambda f: SEVERITY_RANK[f.severity])


class ValidationReport(BaseModel):
    findings: list[ValidationFinding] = Field(default_factory=list)
    token_usage: TokenUsage = Field(default_factory=TokenUsage)
    warning: str | None = None

    @property
    def actionable(self) -> list[ValidationFinding]:
        return [f for f in self.findings if f.actionable]
