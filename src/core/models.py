# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

Inputs (files, options), the evolving project record and the typed
artifacts each stage produces. No module redefines these types; all
imports come from core.models.
"""

from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from buildcheck.config.stages import AnalysisDepth


# === INPUTS ===


class InputFile(BaseModel):
    """One uploaded file: name, size, modification time and content."""

    name: str
    size: int = 0
    last_modified: int = 0  # epoch milliseconds
    content: bytes = Field(default=b"", repr=False)

    @property
    def extension(self) -> str:
        """Lower-cased extension without the dot ('' if none)."""
        _, dot, ext = self.name.rpartition(".")
        return ext.lower() if dot else ""

    def text(self, encoding: str = "utf-8") -> str:
        """Decode content as text, replacing undecodable bytes."""
        return self.content.decode(encoding, errors="replace")

    @classmethod
    def from_path(cls, path: Path) -> InputFile:
        """Load a file from disk."""
        stat = path.stat()
        return cls(
            name=path.name,
            size=stat.st_size,
            last_modified=int(stat.st_mtime * 1000),
            content=path.read_bytes(),
        )


class PipelineOptions(BaseModel):
    """Run options supplied with a submission."""

    include_costs: bool = True
    include_schedule: bool = True
    include_compliance: bool = True
    include_ai_estimate: bool = True
    analysis_depth: AnalysisDepth = "standard"
    existing_project: dict[str, Any] | None = None


class ClassifiedFiles(BaseModel):
    """Five disjoint file groups derived from extensions."""

    model: list[InputFile] = Field(default_factory=list)
    boq: list[InputFile] = Field(default_factory=list)
    documents: list[InputFile] = Field(default_factory=list)
    schedule: list[InputFile] = Field(default_factory=list)
    other: list[InputFile] = Field(default_factory=list)

    @property
    def has_typed_files(self) -> bool:
        return bool(self.model or self.boq or self.documents or self.schedule)

    def names(self) -> dict[str, list[str]]:
        """File names per group, for logging and the result summary."""
        return {
            "model": [f.name for f in self.model],
            "boq": [f.name for f in self.boq],
            "documents": [f.name for f in self.documents],
            "schedule": [f.name for f in self.schedule],
            "other": [f.name for f in self.other],
        }


# === PROJECT RECORD ===


class ProjectRecord(BaseModel):
    """The project under analysis; enriched stage by stage."""

    name: str = ""
    building_type: str = "residential"
    location: str = ""
    gross_floor_area: float | None = None
    number_of_floors: int | None = None
    is_rehabilitation: bool = False
    attributes: dict[str, Any] = Field(default_factory=dict)

    def get_field(self, key: str) -> Any:
        """Read a top-level field or, failing that, a free-form attribute."""
        if key in type(self).model_fields and key != "attributes":
            return getattr(self, key)
        return self.attributes.get(key)

    def apply_fields(self, fields: dict[str, Any], overwrite: bool = False) -> list[str]:
        """Merge fields into the record, returning the keys that changed.

        Known fields are set on the model, anything else lands in
        ``attributes``. Existing non-empty values are kept unless
        ``overwrite`` is set.
        """
        changed: list[str] = []
        for key, value in fields.items():
            if value is None or value == "":
                continue
            current = self.get_field(key)
            if current not in (None, "") and not overwrite:
                continue
            if key in type(self).model_fields and key != "attributes":
                setattr(self, key, value)
            else:
                self.attributes[key] = value
            changed.append(key)
        return changed


# === MODEL FILES ===


class ModelElement(BaseModel):
    """A building element found in a model file."""

    id: str
    entity_type: str
    name: str = ""
    storey: str | None = None


class ModelAnalysis(BaseModel):
    """Elements and storeys extracted from one model file."""

    file_name: str
    schema_version: str = ""
    project_name: str = ""
    elements: list[ModelElement] = Field(default_factory=list)
    storeys: list[str] = Field(default_factory=list)

    def counts_by_type(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for element in self.elements:
            counts[element.entity_type] = counts.get(element.entity_type, 0) + 1
        return counts


# === BILL OF QUANTITIES ===


class BoqArticle(BaseModel):
    """One line of a bill of quantities."""

    code: str
    description: str
    unit: str = "un"
    quantity: float = 0.0
    unit_price: float | None = None
    chapter: str = ""


class BillOfQuantities(BaseModel):
    """Articles plus where they came from."""

    source: Literal["upload", "model", "schedule", "ai_estimate"]
    source_files: list[str] = Field(default_factory=list)
    articles: list[BoqArticle] = Field(default_factory=list)

    def chapters(self) -> dict[str, list[BoqArticle]]:
        grouped: dict[str, list[BoqArticle]] = {}
        for article in self.articles:
            grouped.setdefault(article.chapter or "General", []).append(article)
        return grouped


# === COMPLIANCE ===


class ComplianceFinding(BaseModel):
    """Outcome of evaluating one regulation rule against the project."""

    id: str
    area: str
    description: str
    severity: Literal["critical", "warning", "info", "pass"]
    regulation: str = ""
    article: str = ""
    current_value: Any = None
    required_value: Any = None


class ComplianceReport(BaseModel):
    findings: list[ComplianceFinding] = Field(default_factory=list)
    rules_evaluated: int = 0

    @property
    def failing(self) -> list[ComplianceFinding]:
        return [f for f in self.findings if f.severity in ("critical", "warning")]


class ReviewedFinding(BaseModel):
    """Reasoning-service second opinion on a compliance finding."""

    finding_id: str
    verified: bool = True
    relevance: Literal["high", "medium", "low"] = "medium"
    note: str = ""


# === COSTS ===


class WorkPackage(BaseModel):
    code: str
    description: str
    chapter: str = ""
    estimate_min: float = 0.0
    estimate_most_likely: float = 0.0
    estimate_max: float = 0.0


class AIEstimate(BaseModel):
    """Top-down cost estimate from the reasoning service."""

    work_packages: list[WorkPackage] = Field(default_factory=list)
    total_min: float = 0.0
    total_most_likely: float = 0.0
    total_max: float = 0.0
    assumptions: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)


class PriceMatch(BaseModel):
    article_code: str
    catalog_code: str
    description: str
    unit: str
    quantity: float
    unit_price: float
    confidence: float
    source: Literal["boq", "catalog", "ai"] = "catalog"

    @property
    def estimated_cost(self) -> float:
        return round(self.quantity * self.unit_price, 2)


class UnmatchedArticle(BaseModel):
    article_code: str
    description: str
    unit: str
    quantity: float


class MatchReport(BaseModel):
    """Bottom-up pricing of the bill of quantities."""

    matches: list[PriceMatch] = Field(default_factory=list)
    unmatched: list[UnmatchedArticle] = Field(default_factory=list)

    @property
    def total_estimated_cost(self) -> float:
        return round(sum(m.estimated_cost for m in self.matches), 2)

    @property
    def coverage_percent(self) -> int:
        total = len(self.matches) + len(self.unmatched)
        return round(len(self.matches) / total * 100) if total else 0


class Reconciliation(BaseModel):
    ai_most_likely: float
    algorithmic_total: float
    divergence_percent: float
    verdict: Literal["aligned", "minor_divergence", "major_divergence"]


class MatchReview(BaseModel):
    article_code: str
    verdict: Literal["correct", "questionable", "wrong"] = "correct"
    note: str = ""


class AIReview(BaseModel):
    """Background review of the price matches."""

    match_reviews: list[MatchReview] = Field(default_factory=list)
    summary: str = ""


# === SCHEDULE ===


class ScheduleTask(BaseModel):
    uid: int
    name: str
    start: date
    finish: date
    duration_days: int
    predecessors: list[int] = Field(default_factory=list)
    phase: str = ""
    element_ids: list[str] = Field(default_factory=list)


class ProjectSchedule(BaseModel):
    project_name: str = ""
    start_date: date
    tasks: list[ScheduleTask] = Field(default_factory=list)
    source: Literal["imported", "sequence", "boq"] = "boq"

    @property
    def finish_date(self) -> date:
        if not self.tasks:
            return self.start_date
        return max(t.finish for t in self.tasks)

    @property
    def total_duration_days(self) -> int:
        return (self.finish_date - self.start_date).days


def add_working_days(start: date, days: int) -> date:
    """Date reached after ``days`` working days (Mon-Fri) from ``start``."""
    current = start
    remaining = max(0, days)
    while remaining > 0:
        current += timedelta(days=1)
        if current.weekday() < 5:
            remaining -= 1
    return current


# === EXPORTS ===


class ExportFile(BaseModel):
    """A rendered output; binary content is encoded by the serializer."""

    name: str
    media_type: str
    content: bytes | str = Field(default=b"", repr=False)
