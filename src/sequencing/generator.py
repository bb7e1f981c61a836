# src/sequencing/generator.py — v1
"""Generate phase: ask the reasoning service for a candidate sequence."""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from buildcheck.llm.json_output import extract_json_object
from buildcheck.llm.models import Message
from buildcheck.llm.retry import with_retry
from buildcheck.sequencing.context import summarize_elements, summarize_project
from buildcheck.sequencing.models import CONSTRUCTION_PHASES, Sequence
from buildcheck.sequencing.partition import build_sequence

if TYPE_CHECKING:
    from buildcheck.config.settings import Settings
    from buildcheck.core.models import ModelElement, ProjectRecord
    from buildcheck.llm.base_client import BaseLLMClient
    from buildcheck.llm.cancellation import CancellationToken
    from buildcheck.tracking.call_logger import CallLogger

logger = logging.getLogger(__name__)

_PROMPT_DIR = Path(__file__).parent / "prompts"


@functools.lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    return (_PROMPT_DIR / f"{name}.txt").read_text(encoding="utf-8")


@dataclass(frozen=True)
class GenerationParams:
    model: str
    max_tokens: int
    thinking_budget: int | None


def select_generation_params(
    depth: str, element_count: int, settings: Settings
) -> GenerationParams:
    """Model and reasoning budget for a run of ``depth`` over ``element_count`` elements.

    quick: fast model, no extended reasoning.
    deep: extended reasoning always, larger budget for big models.
    standard: extended reasoning only once the model is large enough.
    """
    large = element_count > settings.sequence_large_model_threshold
    if depth == "quick":
        return GenerationParams(settings.llm_fast_model, 8192, None)

    if depth == "deep":
        budget = (settings.sequence_thinking_budget_deep_large if large
                  else settings.sequence_thinking_budget_deep)
    elif element_count > settings.sequence_thinking_threshold:
        budget = (settings.sequence_thinking_budget_large if large
                  else settings.sequence_thinking_budget_standard)
    else:
        budget = None

    max_tokens = 32768 if budget else 16384
    if budget:
        # Leave headroom for the visible answer
        max_tokens = max(max_tokens, budget + 16384)
    return GenerationParams(settings.llm_default_model, max_tokens, budget)


class SequenceGenerator:
    """Produce a candidate Sequence over the model's element universe."""

    def __init__(
        self,
        llm: BaseLLMClient,
        settings: Settings,
        call_logger: CallLogger | None = None,
    ) -> None:
        self._llm = llm
        self._settings = settings
        self._call_logger = call_logger

    async def generate(
        self,
        elements: list[ModelElement],
        project: ProjectRecord,
        depth: str = "standard",
        enriched_context: str | None = None,
        cancel: CancellationToken | None = None,
    ) -> tuple[Sequence, list[str]]:
        """Return the candidate sequence and any parse warnings.

        Unparseable output yields an empty sequence with every element
        unmapped rather than an exception.
        """
        universe = [e.id for e in elements]
        params = select_generation_params(depth, len(universe), self._settings)
        limit = self._settings.prompt_context_chars

        if enriched_context:
            context = enriched_context
        else:
            context = (
                f"=== PROJECT ===\n{summarize_project(project)}\n\n"
                f"=== MODEL ===\n{summarize_elements(elements, limit)}"
            )

        system = load_prompt("generate").format(phases=", ".join(CONSTRUCTION_PHASES))
        logger.info(
            "Generating sequence: %d elements, model=%s, thinking=%s",
            len(universe), params.model, params.thinking_budget,
        )
        response = await with_retry(
            self._llm.complete,
            [Message(role="user", content=context)],
            system=system,
            max_tokens=params.max_tokens,
            temperature=self._settings.llm_temperature,
            model=params.model,
            thinking_budget=params.thinking_budget,
            cancel=cancel,
            phase="sequence.generate",
        )
        if self._call_logger is not None:
            self._call_logger.record("sequence.generate", response)

        parsed = extract_json_object(response.content, default={"steps": []}, label="sequence generation")
        warnings = [parsed.warning] if parsed.warning else []
        raw_steps = parsed.data.get("steps")
        if not isinstance(raw_steps, list):
            raw_steps = []
            if parsed.ok:
                warnings.append("sequence generation: response has no 'steps' list")

        sequence = build_sequence(
            raw_steps, universe, rationale=str(parsed.data.get("rationale") or "")
        )
        sequence.model = response.model
        sequence.token_usage = response.usage
        return sequence, warnings
