# tests/unit/sequencing/test_partition.py — v1
"""Tests for sequencing/partition.py: single assignment over the universe."""

from __future__ import annotations

from buildcheck.sequencing.partition import build_sequence, coerce_phase


class TestBuildSequence:
    def test_partitions_universe(self):
        seq = build_sequence(
            [
                {"stepId": "S1", "name": "Foundations", "phase": "foundations", "elementIds": ["F1", "F2"]},
                {"stepId": "S2", "name": "Columns", "phase": "structure", "elementIds": ["C1"],
                 "predecessors": ["S1"]},
            ],
            ["F1", "F2", "C1", "W1"],
        )
        assert seq.element_mapping == {"F1": "S1", "F2": "S1", "C1": "S2"}
        assert seq.unmapped_elements == ["W1"]
        assert sorted(seq.universe) == ["C1", "F1", "F2", "W1"]
        assert seq.coverage_percent == 75

    def test_duplicate_claim_keeps_first(self):
        seq = build_sequence(
            [{"stepId": "S1", "elementIds": ["A"]}, {"stepId": "S2", "elementIds": ["A", "B"]}],
            ["A", "B"],
        )
        assert seq.steps[0].element_ids == ["A"]
        assert seq.steps[1].element_ids == ["B"]
        assert seq.unmapped_elements == []

    def test_unknown_ids_dropped(self):
        seq = build_sequence([{"elementIds": ["GHOST", "A"]}], ["A"])
        assert seq.steps[0].element_ids == ["A"]

    def test_defaults_for_missing_fields(self):
        seq = build_sequence([{}, "not a dict"], ["A"])
        assert len(seq.steps) == 1
        step = seq.steps[0]
        assert step.step_id == "S001"
        assert step.name == "Step 1"
        assert step.phase == "site_setup"
        assert seq.unmapped_elements == ["A"]

    def test_snake_case_keys_and_duration(self):
        seq = build_sequence(
            [{"step_id": "X", "element_ids": ["A"], "estimated_duration_days": "3.5"}], ["A"]
        )
        assert seq.steps[0].step_id == "X"
        assert seq.steps[0].estimated_duration_days == 3.5

    def test_non_positive_duration_ignored(self):
        seq = build_sequence([{"estimatedDurationDays": 0}], [])
        assert seq.steps[0].estimated_duration_days is None

    def test_empty_universe(self):
        seq = build_sequence([], [])
        assert seq.coverage_percent == 0


class TestCoercePhase:
    def test_known(self):
        assert coerce_phase(" Roof ") == "roof"

    def test_unknown(self):
        assert coerce_phase("magic") == "site_setup"
        assert coerce_phase(None) == "site_setup"
