# src/llm/base_client.py — v1
"""Abstract reasoning-service client interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from buildcheck.llm.models import LLMResponse, Message

if TYPE_CHECKING:
    from buildcheck.llm.cancellation import CancellationToken


class BaseLLMClient(ABC):
    """Unified interface for reasoning-service providers."""

    @abstractmethod
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
        """Text completion.

        Args:
            messages: Conversation turns; callers summarize bulk data first.
            system: System instruction.
            max_tokens: Output cap.
            temperature: Sampling temperature (ignored with extended reasoning).
            model: Per-call model override.
            thinking_budget: Extra reasoning budget in tokens; None disables it.
            cancel: Token that aborts the in-flight request when triggered.

        Raises:
            LLMCallCancelled: If ``cancel`` fires before the response arrives.
        """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (e.g. anthropic)."""
