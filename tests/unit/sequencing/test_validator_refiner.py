# tests/unit/sequencing/test_validator_refiner.py — v1
"""Tests for sequencing/validator.py and refiner.py parsing."""

from __future__ import annotations

import json

import pytest

from buildcheck.sequencing.models import Sequence, SequenceStep, ValidationFinding
from buildcheck.sequencing.refiner import RefinementError, SequenceRefiner
from buildcheck.sequencing.validator import SequenceValidator
from helpers import ScriptedLLM


def _sequence() -> Sequence:
    return Sequence(steps=[SequenceStep(step_id="S1", name="A", element_ids=["A"])], unmapped_elements=["B"])


class TestSequenceValidator:
    @pytest.mark.asyncio
    async def test_findings_sorted_by_severity(self, settings):
        reply = json.dumps({"findings": [
            {"severity": "info", "description": "ok"},
            {"severity": "ERROR", "category": "dependency", "description": "bad", "affectedSteps": ["S1"]},
            {"severity": "weird", "description": "?"},
            "junk",
        ]})
        report = await SequenceValidator(ScriptedLLM(default=reply), settings).validate(_sequence(), "ctx")
        assert [f.severity for f in report.findings] == ["error", "info", "info"]
        assert len(report.actionable) == 1

    @pytest.mark.asyncio
    async def test_unparseable(self, settings):
        report = await SequenceValidator(ScriptedLLM(default="meh"), settings).validate(_sequence(), "ctx")
        assert report.findings == []
        assert report.warning is not None


class TestSequenceRefiner:
    @pytest.mark.asyncio
    async def test_refine_repartitions_universe(self, settings):
        reply = json.dumps({"steps": [
            {"stepId": "R1", "elementIds": ["A", "B", "Z"]},
        ]})
        llm = ScriptedLLM(default=reply)
        refined = await SequenceRefiner(llm, settings).refine(
            _sequence(),
            [ValidationFinding(severity="warning", description="w"),
             ValidationFinding(severity="info", description="only info")],
            "ctx",
            ["A", "B"],
        )
        assert refined.steps[0].element_ids == ["A", "B"]
        assert refined.unmapped_elements == []
        assert "only info" not in llm.calls[0]["user"]

    @pytest.mark.asyncio
    async def test_malformed_raises(self, settings):
        with pytest.raises(RefinementError):
            await SequenceRefiner(ScriptedLLM(default="nope"), settings).refine(
                _sequence(), [], "ctx", ["A", "B"]
            )
