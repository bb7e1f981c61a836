# src/llm/adapters/anthropic_adapter.py — v1
"""Anthropic Claude adapter implementing BaseLLMClient.

Uses the official anthropic SDK. Extended thinking is enabled per call
through ``thinking_budget``; those calls are streamed because long
reasoning requests exceed the SDK's non-streaming time limit.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from buildcheck.llm.base_client import BaseLLMClient
from buildcheck.llm.cancellation import run_cancellable
from buildcheck.llm.models import LLMResponse, Message

if TYPE_CHECKING:
    from buildcheck.llm.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class AnthropicAdapter(BaseLLMClient):
    """Adapter for Anthropic Claude models."""

    def __init__(
        self,
        model: str = "claude-opus-4-20250514",
        api_key: str | None = None,
        timeout_s: float = 600.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout_s = timeout_s
        self.__client = None  # Lazy initialization

    @property
    def _client(self):
        """Lazy-init Anthropic client (only on first API call)."""
        if self.__client is None:
            import anthropic

            self.__client = anthropic.AsyncAnthropic(
                api_key=self._api_key or "", timeout=self._timeout_s
            )
        return self.__client

    @property
    def provider_name(self) -> str:
        return "anthropic"

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.2,
        model: str | None = None,
        thinking_budget: int | None = None,
        cancel: CancellationToken | None = None,
    ) -> LLMResponse:
        """Text completion via the Messages API."""
        kwargs = self._build_kwargs(
            messages, system, max_tokens, temperature, model, thinking_budget
        )

        start = time.monotonic()
        if thinking_budget:
            response = await run_cancellable(self._stream(kwargs), cancel)
        else:
            response = await run_cancellable(
                self._client.messages.create(**kwargs), cancel
            )
        latency_ms = int((time.monotonic() - start) * 1000)

        logger.debug(
            "anthropic call: model=%s in=%d out=%d %dms",
            response.model, response.usage.input_tokens,
            response.usage.output_tokens, latency_ms,
        )
        return LLMResponse(
            content=self._extract_text(response),
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=response.model,
            provider="anthropic",
            latency_ms=latency_ms,
            stop_reason=getattr(response, "stop_reason", None),
            raw_response=response,
        )

    # --- Internal helpers ---

    async def _stream(self, kwargs: dict[str, Any]) -> Any:
        async with self._client.messages.stream(**kwargs) as stream:
            return await stream.get_final_message()

    def _build_kwargs(
        self,
        messages: list[Message],
        system: str | None,
        max_tokens: int,
        temperature: float,
        model: str | None,
        thinking_budget: int | None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": model or self._model,
            "max_tokens": max_tokens,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if system:
            kwargs["system"] = system
        if thinking_budget:
            # The budget must leave room for the visible answer
            budget = min(thinking_budget, max_tokens - 1024)
            kwargs["thinking"] = {"type": "enabled", "budget_tokens": budget}
        else:
            kwargs["temperature"] = temperature
        return kwargs

    @staticmethod
    def _extract_text(response: Any) -> str:
        """Concatenate text blocks, skipping thinking blocks."""
        return "".join(
            block.text
            for block in response.content
            if getattr(block, "type", None) == "text"
        )
