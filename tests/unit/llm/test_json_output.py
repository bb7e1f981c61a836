# tests/unit/llm/test_json_output.py — v1
"""Tests for llm/json_output.py: tolerant JSON object extraction."""

from __future__ import annotations

from buildcheck.llm.json_output import extract_json_object


class TestExtractJsonObject:
    def test_plain_object(self):
        parsed = extract_json_object('{"steps": []}')
        assert parsed.ok
        assert parsed.data == {"steps": []}
        assert parsed.warning is None

    def test_fenced_block(self):
        text = 'Here you go:\n```json\n{"a": 1}\n```\nThanks'
        assert extract_json_object(text).data == {"a": 1}

    def test_prose_around_object(self):
        assert extract_json_object('Result: {"a": {"b": 2}} done').data == {"a": {"b": 2}}

    def test_no_object_uses_default(self):
        parsed = extract_json_object("I cannot help", default={"steps": []}, label="gen")
        assert parsed.ok is False
        assert parsed.data == {"steps": []}
        assert parsed.warning.startswith("gen: no JSON object")

    def test_truncated_object(self):
        parsed = extract_json_object('{"steps": [{"stepId": "S1"', default={"steps": []})
        assert parsed.ok is False
        assert parsed.data == {"steps": []}
        assert "malformed JSON" in parsed.warning

    def test_array_is_rejected(self):
        parsed = extract_json_object("[1, 2]")
        assert parsed.ok is False

    def test_default_not_shared(self):
        default = {"steps": []}
        parsed = extract_json_object("nope", default=default)
        parsed.data["x"] = 1
        assert default == {"steps": []}

    def test_empty_text(self):
        assert extract_json_object("").ok is False
