# src/pipeline/serializer.py — v1
"""PipelineResult <-> plain JSON-compatible dict.

Binary payloads (workbook exports, raw model bytes) cannot go through
pydantic's JSON mode unchanged, so they are wrapped as
``{"encoding": "base64", "data": ...}`` and unwrapped on the way back.
"""

from __future__ import annotations

import base64
from typing import Any

from buildcheck.pipeline.result import PipelineResult

_BINARY_FIELDS = {"exports", "source_model"}


def _encode_bytes(value: bytes) -> dict[str, str]:
    return {"encoding": "base64", "data": base64.b64encode(value).decode("ascii")}


def _decode_value(value: Any) -> Any:
    if isinstance(value, dict) and value.get("encoding") == "base64":
        return base64.b64decode(value["data"])
    return value


def serialize_result(result: PipelineResult, include_source: bool = True) -> dict[str, Any]:
    """Dump a result to a JSON-safe dict."""
    data = result.model_dump(mode="json", exclude=_BINARY_FIELDS)

    exports: dict[str, Any] = {}
    for key, export in result.exports.items():
        content = export.content
        exports[key] = {
            "name": export.name,
            "media_type": export.media_type,
            "content": _encode_bytes(content) if isinstance(content, bytes) else content,
        }
    data["exports"] = exports

    if include_source and result.source_model is not None:
        data["source_model"] = _encode_bytes(result.source_model)
    else:
        data["source_model"] = None
    return data


def deserialize_result(data: dict[str, Any]) -> PipelineResult:
    """Rebuild a PipelineResult from ``serialize_result`` output."""
    payload = dict(data)
    payload["exports"] = {
        key: {**export, "content": _decode_value(export.get("content", b""))}
        for key, export in (data.get("exports") or {}).items()
    }
    payload["source_model"] = _decode_value(data.get("source_model"))
    return PipelineResult.model_validate(payload)
