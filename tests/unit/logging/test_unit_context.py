# tests/unit/logging/test_context.py — v2
"""Tests for logging/context.py: contextual logging variables."""

from __future__ import annotations

from buildcheck.logging.context import (
    clear_context,
    get_context,
    set_run_context,
    set_stage_context,
)


class TestLogContext:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_initial_state(self):
        ctx = get_context()
        assert ctx.job_id is None
        assert ctx.run_id is None
        assert ctx.stage is None

    def test_set_run_context(self):
        set_run_context("run1", job_id="job_abc")
        ctx = get_context()
        assert ctx.run_id == "run1"
        assert ctx.job_id == "job_abc"

    def test_run_context_without_job_keeps_previous_job(self):
        set_run_context("run1", job_id="job_abc")
        set_run_context("run2")
        assert get_context().job_id == "job_abc"

    def test_set_stage_context(self):
        set_stage_context("parse_ifc")
        assert get_context().stage == "parse_ifc"
        set_stage_context(None)
        assert get_context().stage is None

    def test_as_dict_filters_none(self):
        set_run_context("run1")
        assert get_context().as_dict() == {"run_id": "run1"}

    def test_clear(self):
        set_run_context("run1", job_id="job_abc")
        set_stage_context("export")
        clear_context()
        ctx = get_context()
        assert ctx.run_id is None
        assert ctx.stage is None
