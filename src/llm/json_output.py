# src/llm/json_output.py — v1
"""Tolerant extraction of one JSON object from free-text model output.

Responses may wrap the object in a fenced block, precede it with prose or be
cut off mid-object. Parsing never raises: callers get the parsed object, or
their default plus a warning describing what went wrong.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)(?:```|$)", re.DOTALL)


@dataclass
class JsonExtraction:
    """Outcome of a tolerant parse."""

    data: dict[str, Any] = field(default_factory=dict)
    ok: bool = False
    warning: str | None = None


def _candidate_text(text: str) -> str:
    """Strip a fenced block if present, then cut from first '{' to last '}'."""
    fenced = _FENCE_RE.search(text)
    if fenced and "{" in fenced.group(1):
        text = fenced.group(1)
    start = text.find("{")
    if start == -1:
        return ""
    end = text.rfind("}")
    if end < start:
        return text[start:]
    return text[start : end + 1]


def extract_json_object(
    text: str,
    default: dict[str, Any] | None = None,
    label: str = "response",
) -> JsonExtraction:
    """Parse the JSON object embedded in ``text``.

    Args:
        text: Raw model output.
        default: Value returned in ``data`` on failure (empty dict if None).
        label: Name used in the warning message.
    """
    fallback = dict(default or {})
    candidate = _candidate_text(text or "")
    if not candidate:
        return JsonExtraction(
            data=fallback, warning=f"{label}: no JSON object found in output"
        )

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        return JsonExtraction(
            data=fallback,
            warning=f"{label}: malformed JSON ({exc.msg} at char {exc.pos})",
        )

    if not isinstance(parsed, dict):
        return JsonExtraction(
            data=fallback, warning=f"{label}: expected a JSON object"
        )
    return JsonExtraction(data=parsed, ok=True)
