# src/llm/retry.py — v1
"""Retry policy with exponential backoff for reasoning-service calls."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from buildcheck.llm.cancellation import LLMCallCancelled

logger = logging.getLogger(__name__)


class LLMRetryExhausted(Exception):
    """All retries exhausted for a reasoning-service call."""

    def __init__(self, phase: str, error_type: str, attempts: int, last_error: Exception):
        self.phase = phase
        self.error_type = error_type
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{phase} failed after {attempts} attempt(s) ({error_type}): {last_error}"
        )


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration for one error class."""

    max_retries: int
    base_delay_s: float
    backoff_factor: float = 2.0
    jitter: bool = True


DEFAULT_RETRY_CONFIGS: dict[str, RetryConfig] = {
    "rate_limit": RetryConfig(max_retries=3, base_delay_s=2.0),
    "overloaded": RetryConfig(max_retries=3, base_delay_s=5.0),
    "timeout": RetryConfig(max_retries=1, base_delay_s=1.0, backoff_factor=1.0),
    "server_error": RetryConfig(max_retries=2, base_delay_s=3.0),
}


def classify_error(error: Exception) -> str:
    """Map an exception to a retry error class ('fatal' is never retried)."""
    status = getattr(error, "status_code", None)
    if status == 429:
        return "rate_limit"
    if status == 529:
        return "overloaded"
    if isinstance(status, int) and status >= 500:
        return "server_error"
    if isinstance(status, int) and 400 <= status < 500:
        return "fatal"

    name = type(error).__name__.lower()
    if "timeout" in name or isinstance(error, asyncio.TimeoutError):
        return "timeout"
    if "connection" in name:
        return "server_error"
    return "fatal"


def _compute_delay(config: RetryConfig, attempt: int) -> float:
    """Delay before retry number ``attempt`` (0-based)."""
    delay = config.base_delay_s * (config.backoff_factor ** attempt)
    if config.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    return delay


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    phase: str = "unknown",
    retry_configs: dict[str, RetryConfig] | None = None,
    **kwargs: Any,
) -> Any:
    """Execute an async call, retrying transient transport errors.

    Cancellations propagate immediately and are never retried.

    Raises:
        LLMCallCancelled: If the call was cancelled.
        LLMRetryExhausted: If the error is fatal or retries ran out.
    """
    configs = retry_configs or DEFAULT_RETRY_CONFIGS
    attempts = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except LLMCallCancelled:
            raise
        except Exception as e:
            error_type = classify_error(e)
            attempts += 1
            config = configs.get(error_type)

            if config is None or attempts > config.max_retries:
                raise LLMRetryExhausted(phase, error_type, attempts, e) from e

            delay = _compute_delay(config, attempts - 1)
            logger.warning(
                "%s: %s (attempt %d/%d), retrying in %.1fs",
                phase, error_type, attempts, config.max_retries, delay,
            )
            await asyncio.sleep(delay)
