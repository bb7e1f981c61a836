# tests/unit/analysis/test_rules.py — v1
"""Tests for analysis/rules.py: rule evaluation."""

from __future__ import annotations

import json

import pytest

from buildcheck.analysis.rules import DEFAULT_RULES, Rule, evaluate_rule, evaluate_rules, load_rules
from buildcheck.core.models import ProjectRecord

HEIGHT = Rule(
    id="H", area="architecture", description="Ceiling height", field="ceiling_height",
    operator=">=", value=2.4, severity="critical",
)


class TestEvaluateRule:
    def test_pass(self):
        project = ProjectRecord(attributes={"ceiling_height": 2.6})
        assert evaluate_rule(HEIGHT, project).severity == "pass"

    def test_fail_uses_rule_severity(self):
        finding = evaluate_rule(HEIGHT, ProjectRecord(attributes={"ceiling_height": 2.2}))
        assert finding.severity == "critical"
        assert finding.current_value == 2.2
        assert finding.required_value == 2.4

    def test_missing_data_is_info(self):
        finding = evaluate_rule(HEIGHT, ProjectRecord())
        assert finding.severity == "info"
        assert "(no data)" in finding.description

    def test_not_comparable_is_info(self):
        finding = evaluate_rule(HEIGHT, ProjectRecord(attributes={"ceiling_height": "tall"}))
        assert finding.severity == "info"

    def test_exists_operator(self):
        rule = Rule(id="E", area="a", description="d", field="has_lift", operator="exists")
        assert evaluate_rule(rule, ProjectRecord(attributes={"has_lift": True})).severity == "pass"
        assert evaluate_rule(rule, ProjectRecord()).severity == "warning"

    def test_top_level_field(self):
        rule = Rule(id="F", area="a", description="d", field="number_of_floors", operator="<=", value=4)
        assert evaluate_rule(rule, ProjectRecord(number_of_floors=6)).severity == "warning"


class TestEvaluateRules:
    def test_failures_first(self):
        report = evaluate_rules(ProjectRecord(attributes={"ceiling_height": 2.0}), DEFAULT_RULES)
        severities = [f.severity for f in report.findings]
        rank = {"critical": 0, "warning": 1, "info": 2, "pass": 3}
        assert severities == sorted(severities, key=rank.__getitem__)
        assert report.rules_evaluated == len(DEFAULT_RULES)
        assert any(f.id == "ARCH-01" and f.severity == "critical" for f in report.failing)

    def test_building_type_filter(self):
        report = evaluate_rules(ProjectRecord(building_type="industrial"), DEFAULT_RULES)
        assert all(f.id != "ARCH-01" for f in report.findings)

    def test_rehabilitation_only(self):
        rule = HEIGHT.model_copy(update={"rehabilitation_only": True})
        assert evaluate_rules(ProjectRecord(), [rule]).rules_evaluated == 0
        assert evaluate_rules(ProjectRecord(is_rehabilitation=True), [rule]).rules_evaluated == 1


class TestLoadRules:
    def test_defaults(self):
        assert len(load_rules(None)) == len(DEFAULT_RULES)

    def test_from_json(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps([HEIGHT.model_dump()]))
        rules = load_rules(path)
        assert [r.id for r in rules] == ["H"]

    def test_invalid_operator(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps([{**HEIGHT.model_dump(), "operator": "~="}]))
        with pytest.raises(ValueError):
            load_rules(path)
