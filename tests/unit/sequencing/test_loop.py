# tests/unit/sequencing/test_loop.py — v1
"""Tests for sequencing/loop.py: generate, validate, refine control flow."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from buildcheck.core.models import ModelElement, ProjectRecord
from buildcheck.llm.cancellation import LLMCallCancelled
from buildcheck.llm.models import TokenUsage
from buildcheck.sequencing.loop import RefinementLoop
from buildcheck.sequencing.models import (
    Sequence,
    SequenceStep,
    ValidationFinding,
    ValidationReport,
)
from buildcheck.sequencing.refiner import RefinementError


def _candidate() -> Sequence:
    return Sequence(
        steps=[SequenceStep(step_id="S1", name="All", element_ids=["A"])],
        unmapped_elements=["B"],
        token_usage=TokenUsage(input=10, output=5),
    )


def _loop(report=None, refined=None, refine_error=None):
    generator = AsyncMock()
    generator.generate.return_value = (_candidate(), [])
    validator = AsyncMock()
    validator.validate.return_value = report or ValidationReport()
    refiner = AsyncMock()
    if refine_error is not None:
        refiner.refine.side_effect = refine_error
    else:
        refiner.refine.return_value = refined or Sequence(
            steps=[SequenceStep(step_id="R1", name="Fixed", element_ids=["A", "B"])],
            token_usage=TokenUsage(input=1, output=1),
        )
    return RefinementLoop(generator, validator, refiner), generator, validator, refiner


ELEMENTS = [ModelElement(id="A", entity_type="IfcWall"), ModelElement(id="B", entity_type="IfcSlab")]
ERROR = ValidationFinding(severity="error", description="slab before walls")
INFO = ValidationFinding(severity="info", description="looks fine")


class TestRefinementLoop:
    @pytest.mark.asyncio
    async def test_standard_generates_only(self):
        loop, _, validator, refiner = _loop()
        outcome = await loop.run(ELEMENTS, ProjectRecord(), depth="standard")
        assert outcome.validated is False
        validator.validate.assert_not_awaited()
        refiner.refine.assert_not_awaited()
        assert outcome.sequence.steps[0].step_id == "S1"

    @pytest.mark.asyncio
    async def test_deep_approved_without_refine(self):
        loop, _, _, refiner = _loop(report=ValidationReport(findings=[INFO]))
        outcome = await loop.run(ELEMENTS, ProjectRecord(), depth="deep", context="ctx")
        assert outcome.validated is True
        assert outcome.findings == [INFO]
        assert outcome.refine_attempts == 0
        refiner.refine.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deep_refines_once_on_error(self):
        report = ValidationReport(findings=[ERROR, INFO], token_usage=TokenUsage(input=2, output=2))
        loop, _, _, refiner = _loop(report=report)
        outcome = await loop.run(ELEMENTS, ProjectRecord(), depth="deep", context="ctx")
        assert outcome.refined is True
        assert outcome.refine_attempts == 1
        assert outcome.sequence.steps[0].step_id == "R1"
        refiner.refine.assert_awaited_once()
        universe = refiner.refine.await_args.args[3]
        assert universe == ["A", "B"]
        # generate 15 + validate 4 + refine 2
        assert outcome.token_usage.total == 21

    @pytest.mark.asyncio
    async def test_failed_refine_keeps_candidate(self):
        loop, *_ = _loop(
            report=ValidationReport(findings=[ERROR]),
            refine_error=RefinementError("no steps"),
        )
        outcome = await loop.run(ELEMENTS, ProjectRecord(), depth="deep")
        assert outcome.refined is False
        assert outcome.sequence.steps[0].step_id == "S1"
        assert any("Original sequence kept" in w for w in outcome.warnings)

    @pytest.mark.asyncio
    async def test_validation_failure_is_a_warning(self):
        loop, _, validator, _ = _loop()
        validator.validate.side_effect = RuntimeError("down")
        outcome = await loop.run(ELEMENTS, ProjectRecord(), depth="deep")
        assert outcome.validated is False
        assert "validation unavailable" in outcome.warnings[0]

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        loop, _, validator, _ = _loop()
        validator.validate.side_effect = LLMCallCancelled("stop")
        with pytest.raises(LLMCallCancelled):
            await loop.run(ELEMENTS, ProjectRecord(), depth="deep")

    @pytest.mark.asyncio
    async def test_empty_candidate_skips_validation(self):
        loop, generator, validator, _ = _loop()
        generator.generate.return_value = (Sequence(unmapped_elements=["A", "B"]), ["w"])
        outcome = await loop.run(ELEMENTS, ProjectRecord(), depth="deep")
        validator.validate.assert_not_awaited()
        assert outcome.warnings == ["w"]

    @pytest.mark.asyncio
    async def test_phase_callback(self):
        loop, *_ = _loop(report=ValidationReport(findings=[ERROR]))
        seen = []

        async def on_phase(fraction, message):
            seen.append(fraction)

        await loop.run(ELEMENTS, ProjectRecord(), depth="deep", on_phase=on_phase)
        assert seen == [0.1, 0.5, 0.7]
