# src/llm/cancellation.py — v1
"""Cancellation tokens for in-flight reasoning-service calls.

A token is shared by whoever may abort a run (the job runner, a CLI signal
handler) and every call issued on the run's behalf. Triggering it aborts the
awaiting call with LLMCallCancelled; sibling stages are not affected.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, TypeVar

T = TypeVar("T")


class LLMCallCancelled(Exception):
    """Raised when a reasoning-service call is aborted by its token."""


class CancellationToken:
    """One-shot cancellation signal."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise LLMCallCancelled(self.reason or "cancelled")


async def run_cancellable(aw: Awaitable[T], token: CancellationToken | None) -> T:
    """Await ``aw`` unless ``token`` fires first.

    On cancellation the underlying task is cancelled and awaited so that no
    request outlives the caller, then LLMCallCancelled is raised.
    """
    if token is None:
        return await aw

    token.raise_if_cancelled()
    call = asyncio.ensure_future(aw)
    waiter = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait(
            {call, waiter}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        call.cancel()
        waiter.cancel()
        raise

    if call in done:
        waiter.cancel()
        return call.result()

    call.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await call
    raise LLMCallCancelled(token.reason or "cancelled")
