# tests/unit/pipeline/test_progress.py — v1
"""Tests for pipeline/progress.py: weighted cumulative progress."""

from __future__ import annotations

import pytest

from buildcheck.pipeline.progress import ProgressReporter

WEIGHTS = {"a": 20, "b": 30, "c": 50}


class TestProgressReporter:
    @pytest.mark.asyncio
    async def test_complete_stage_advances(self):
        reporter = ProgressReporter(weights=WEIGHTS)
        assert (await reporter.report("a", "start")).percent == 0
        reporter.complete_stage("a")
        event = await reporter.report("a", "done")
        assert event.percent == 20
        assert event.stage_percent == 100
        assert event.stages_completed == ("a",)

    @pytest.mark.asyncio
    async def test_partial_does_not_advance(self):
        reporter = ProgressReporter(weights=WEIGHTS)
        reporter.complete_stage("a")
        event = await reporter.report_partial("b", 0.4, "halfway")
        assert event.percent == 32
        assert event.stage_percent == 40
        assert reporter.percent == 20

    @pytest.mark.asyncio
    async def test_partial_fraction_clamped(self):
        reporter = ProgressReporter(weights=WEIGHTS)
        assert (await reporter.report_partial("c", 3.0, "x")).percent == 50
        assert (await reporter.report_partial("c", -1, "x")).percent == 0

    def test_percent_capped(self):
        reporter = ProgressReporter(weights=WEIGHTS)
        for stage in ("a", "b", "c", "c"):
            reporter.complete_stage(stage)
        assert reporter.percent == 100

    @pytest.mark.asyncio
    async def test_listener_sees_live_warnings(self):
        events = []

        async def listener(event):
            events.append(event)

        warnings: list[str] = []
        reporter = ProgressReporter(listener=listener, warnings=warnings, weights=WEIGHTS)
        await reporter.report("a", "one")
        warnings.append("a: broken")
        await reporter.report("a", "two")
        assert [e.warnings for e in events] == [(), ("a: broken",)]

    def test_unknown_stage_has_no_weight(self):
        reporter = ProgressReporter(weights=WEIGHTS)
        reporter.complete_stage("zzz")
        assert reporter.percent == 0
        assert reporter.completed == ["zzz"]
