# tests/unit/config/test_stages.py — v1
"""Tests for config/stages.py: weights and run orders."""

from __future__ import annotations

from buildcheck.config.stages import DECLARED_ORDER, STAGE_WEIGHTS, stage_order


class TestWeights:
    def test_weights_sum_to_100(self):
        assert sum(STAGE_WEIGHTS.values()) == 100

    def test_every_stage_weighted(self):
        assert set(STAGE_WEIGHTS) == set(DECLARED_ORDER)


class TestStageOrder:
    def test_standard_is_declared_order(self):
        assert stage_order("standard") == list(DECLARED_ORDER)

    def test_quick_is_declared_order(self):
        assert stage_order("quick") == list(DECLARED_ORDER)

    def test_deep_pulls_parsers_before_sequencing(self):
        assert stage_order("deep") == [
            "classify",
            "parse_ifc",
            "parse_boq",
            "parse_pdf",
            "ai_sequence",
            "analyze",
            "ai_estimate",
            "estimate",
            "reconcile",
            "schedule",
            "export",
        ]

    def test_deep_is_a_permutation(self):
        assert sorted(stage_order("deep")) == sorted(DECLARED_ORDER)

    def test_returns_fresh_list(self):
        order = stage_order()
        order.append("extra")
        assert "extra" not in stage_order()
