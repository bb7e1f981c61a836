# src/llm/models.py — v1
"""Reasoning-service types: Message, LLMResponse, TokenUsage."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel


class Message(BaseModel):
    """Single message in a conversation."""

    role: Literal["user", "assistant"]
    content: str


class LLMResponse(BaseModel):
    """Normalized response from the reasoning service."""

    content: str
    input_tokens: int
    output_tokens: int
    model: str
    provider: str
    latency_ms: int
    stop_reason: str | None = None
    raw_response: Any = None

    @property
    def usage(self) -> TokenUsage:
        return TokenUsage(input=self.input_tokens, output=self.output_tokens)


class TokenUsage(BaseModel):
    """Input/output unit counts, summed across calls and phases."""

    input: int = 0
    output: int = 0

    @property
    def total(self) -> int:
        return self.input + self.output

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(input=self.input + other.input, output=self.output + other.output)
