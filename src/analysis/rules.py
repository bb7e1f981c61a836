# src/analysis/rules.py — v1
"""Regulation rules evaluated against project record fields.

A rule compares one project field with a required value through a small
operator table. Missing data yields an ``info`` finding, a satisfied rule
a ``pass`` finding, and a violated one the rule's own severity.
"""

from __future__ import annotations

import json
import logging
import operator
from pathlib import Path
from typing import Any, Callable, Literal

from pydantic import BaseModel, Field, TypeAdapter

from buildcheck.core.models import ComplianceFinding, ComplianceReport, ProjectRecord

logger = logging.getLogger(__name__)

OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
    "==": operator.eq,
    "!=": operator.ne,
    "exists": lambda current, _required: current not in (None, "", False),
}


class Rule(BaseModel):
    id: str
    area: str
    description: str
    field: str
    operator: Literal[">=", "<=", ">", "<", "==", "!=", "exists"]
    value: Any = None
    severity: Literal["critical", "warning", "info"] = "warning"
    regulation: str = ""
    article: str = ""
    building_types: list[str] = Field(default_factory=list)
    rehabilitation_only: bool = False

    def applies_to(self, project: ProjectRecord) -> bool:
        if self.building_types and project.building_type not in self.building_types:
            return False
        return project.is_rehabilitation or not self.rehabilitation_only


DEFAULT_RULES: list[Rule] = [
    Rule(
        id="ARCH-01",
        area="architecture",
        description="Minimum ceiling height in habitable rooms",
        field="ceiling_height",
        operator=">=",
        value=2.4,
        severity="critical",
        regulation="RGEU",
        article="Art. 65",
        building_types=["residential"],
    ),
    Rule(
        id="ACC-01",
        area="accessibility",
        description="Minimum clear width of the accessible entrance",
        field="entrance_width",
        operator=">=",
        value=0.87,
        severity="warning",
        regulation="DL 163/2006",
        article="4.9.3",
    ),
    Rule(
        id="ACC-02",
        area="accessibility",
        description="Lift required above three storeys",
        field="has_elevator",
        operator="exists",
        severity="warning",
        regulation="DL 163/2006",
        article="2.6",
    ),
    Rule(
        id="FIRE-01",
        area="fire_safety",
        description="Automatic fire detection installed",
        field="has_fire_detection",
        operator="exists",
        severity="critical",
        regulation="SCIE",
        article="Art. 125",
    ),
    Rule(
        id="FIRE-02",
        area="fire_safety",
        description="Maximum evacuation path length",
        field="evacuation_distance",
        operator="<=",
        value=30,
        severity="critical",
        regulation="SCIE",
        article="Art. 57",
    ),
    Rule(
        id="ENER-01",
        area="energy",
        description="Minimum energy class for new buildings",
        field="energy_class_rank",
        operator=">=",
        value=5,
        severity="warning",
        regulation="SCE",
        article="Portaria 349-B/2013",
    ),
    Rule(
        id="GEN-01",
        area="general",
        description="Gross floor area declared",
        field="gross_floor_area",
        operator="exists",
        severity="info",
        regulation="RJUE",
        article="Art. 9",
    ),
    Rule(
        id="GEN-02",
        area="general",
        description="Number of floors declared",
        field="number_of_floors",
        operator="exists",
        severity="info",
        regulation="RJUE",
        article="Art. 9",
    ),
]

_rules_adapter = TypeAdapter(list[Rule])


def load_rules(path: Path | None) -> list[Rule]:
    """Rules from a JSON file, or the built-in set when no path is given."""
    if path is None:
        return list(DEFAULT_RULES)
    data = json.loads(Path(path).expanduser().read_text(encoding="utf-8"))
    rules = _rules_adapter.validate_python(data)
    logger.info("Loaded %d rules from %s", len(rules), path)
    return rules


def evaluate_rule(rule: Rule, project: ProjectRecord) -> ComplianceFinding:
    current = project.get_field(rule.field)
    base = {
        "id": rule.id,
        "area": rule.area,
        "description": rule.description,
        "regulation": rule.regulation,
        "article": rule.article,
        "current_value": current,
        "required_value": rule.value,
    }
    if current is None and rule.operator != "exists":
        return ComplianceFinding(
            **{**base, "description": f"{rule.description} (no data)"}, severity="info"
        )
    try:
        satisfied = OPERATORS[rule.operator](current, rule.value)
    except TypeError:
        return ComplianceFinding(
            **{**base, "description": f"{rule.description} (value not comparable)"},
            severity="info",
        )
    return ComplianceFinding(**base, severity="pass" if satisfied else rule.severity)


def evaluate_rules(project: ProjectRecord, rules: list[Rule]) -> ComplianceReport:
    """Evaluate every applicable rule; the report lists failures first."""
    applicable = [r for r in rules if r.applies_to(project)]
    findings = [evaluate_rule(rule, project) for rule in applicable]
    rank = {"critical": 0, "warning": 1, "info": 2, "pass": 3}
    findings.sort(key=lambda f: rank[f.severity])
    return ComplianceReport(findings=findings, rules_evaluated=len(applicable))
