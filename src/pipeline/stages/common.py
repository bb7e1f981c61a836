# src/pipeline/stages/common.py — v1
"""Helpers shared by the reasoning-service stages."""

from __future__ import annotations

import functools
import json
import logging
from pathlib import Path
from typing import Any

from buildcheck.llm.json_output import JsonExtraction, extract_json_object
from buildcheck.llm.models import Message, TokenUsage
from buildcheck.llm.retry import with_retry
from buildcheck.pipeline.plugin_kit.models import StageContext
from buildcheck.sequencing.context import cap

logger = logging.getLogger(__name__)

_PROMPT_DIR = Path(__file__).parent / "prompts"

DEFAULT_MAX_TOKENS = 8192


@functools.lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    return (_PROMPT_DIR / f"{name}.txt").read_text(encoding="utf-8")


def to_payload(data: Any, limit: int) -> str:
    """JSON-encode a prompt payload, capped to the context budget."""
    return cap(json.dumps(data, ensure_ascii=False, default=str, indent=1), limit)


async def ask_json(
    ctx: StageContext,
    phase: str,
    prompt: str,
    payload: str,
    default: dict[str, Any],
    max_tokens: int = DEFAULT_MAX_TOKENS,
    model: str | None = None,
) -> tuple[JsonExtraction, TokenUsage]:
    """One reasoning call expecting a JSON object back.

    Transport errors (after retries) and cancellations propagate; a reply
    that does not parse gives ``default`` and a warning instead.
    """
    if ctx.llm is None:
        raise RuntimeError(f"{phase}: no reasoning client configured")
    response = await with_retry(
        ctx.llm.complete,
        [Message(role="user", content=payload)],
        system=load_prompt(prompt),
        max_tokens=max_tokens,
        temperature=ctx.settings.llm_temperature,
        model=model or ctx.settings.llm_default_model,
        cancel=ctx.cancel,
        phase=phase,
    )
    if ctx.call_logger is not None:
        ctx.call_logger.record(phase, response)
    parsed = extract_json_object(response.content, default=default, label=phase)
    if parsed.warning:
        logger.warning("%s", parsed.warning)
    return parsed, response.usage


def as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
