# src/pipeline/result.py — v1
"""Final output of one pipeline run."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from buildcheck.core.models import (
    AIEstimate,
    AIReview,
    BillOfQuantities,
    ComplianceReport,
    ExportFile,
    MatchReport,
    ModelAnalysis,
    ProjectRecord,
    ProjectSchedule,
    Reconciliation,
    ReviewedFinding,
)
from buildcheck.llm.models import TokenUsage
from buildcheck.sequencing.models import Sequence, ValidationFinding


class PipelineResult(BaseModel):
    """Project record, every artifact the stages produced, and run metadata.

    Artifacts a run did not produce stay None (or empty). ``source_model``
    holds the raw bytes of the first model file and is never cached.
    """

    project: ProjectRecord
    classified: dict[str, list[str]] = Field(default_factory=dict)

    model_analyses: list[ModelAnalysis] = Field(default_factory=list)
    boq: BillOfQuantities | None = None
    imported_schedule: ProjectSchedule | None = None
    document_texts: dict[str, str] = Field(default_factory=dict)
    sequence: Sequence | None = None
    validation_findings: list[ValidationFinding] = Field(default_factory=list)
    compliance: ComplianceReport | None = None
    regulatory_review: list[ReviewedFinding] = Field(default_factory=list)
    ai_estimate: AIEstimate | None = None
    match_report: MatchReport | None = None
    reconciliation: Reconciliation | None = None
    ai_review: AIReview | None = None
    schedule: ProjectSchedule | None = None
    element_mapping: dict[str, int] = Field(default_factory=dict)
    exports: dict[str, ExportFile] = Field(default_factory=dict)
    source_model: bytes | None = Field(default=None, repr=False)

    analysis_depth: str = "standard"
    warnings: list[str] = Field(default_factory=list)
    stages_completed: list[str] = Field(default_factory=list)
    token_usage: TokenUsage = Field(default_factory=TokenUsage)
    processing_time_ms: int = 0

    def summary(self) -> dict[str, Any]:
        """Short human-readable digest, used by the CLI and job logs."""
        digest: dict[str, Any] = {
            "project": self.project.name or "(unnamed)",
            "depth": self.analysis_depth,
            "stages": len(self.stages_completed),
            "warnings": len(self.warnings),
            "tokens": self.token_usage.total,
            "elapsed_ms": self.processing_time_ms,
        }
        if self.model_analyses:
            digest["elements"] = sum(len(a.elements) for a in self.model_analyses)
        if self.boq is not None:
            digest["boq_articles"] = len(self.boq.articles)
        if self.sequence is not None:
            digest["sequence_steps"] = len(self.sequence.steps)
        if self.compliance is not None:
            digest["compliance_failing"] = len(self.compliance.failing)
        if self.match_report is not None:
            digest["estimated_cost"] = self.match_report.total_estimated_cost
        if self.schedule is not None:
            digest["schedule_days"] = self.schedule.total_duration_days
        if self.exports:
            digest["exports"] = sorted(self.exports)
        return digest
