# src/cache/result_cache.py — v1
"""Bounded result cache in front of a cache store.

A store that cannot be opened or fails mid-operation is replaced by an
in-process MemoryCacheStore for the rest of the process lifetime; the cache
never fails a pipeline run.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable

from buildcheck.cache.memory_store import MemoryCacheStore
from buildcheck.cache.models import CacheEntry
from buildcheck.pipeline.result import PipelineResult
from buildcheck.pipeline.serializer import deserialize_result, serialize_result

if TYPE_CHECKING:
    from buildcheck.cache.base_cache_store import BaseCacheStore
    from buildcheck.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 5


class ResultCache:
    """Fingerprint-keyed cache of serialized pipeline results.

    Args:
        store: Backing store, or None to use the in-process fallback.
        max_entries: Capacity; after each put the oldest entries by
            ``cached_at`` are evicted until the count is within it.
        clock: Timestamp source, replaceable in tests.
    """

    def __init__(
        self,
        store: BaseCacheStore | None = None,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store: BaseCacheStore = store if store is not None else MemoryCacheStore()
        self._max_entries = max_entries
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def store(self) -> BaseCacheStore:
        return self._store

    @property
    def degraded(self) -> bool:
        """True once the cache has fallen back to memory."""
        return isinstance(self._store, MemoryCacheStore)

    async def get(self, fingerprint: str) -> PipelineResult | None:
        try:
            entry = await self._store.get(fingerprint)
        except Exception as e:
            self._fall_back("get", e)
            entry = await self._store.get(fingerprint)
        if entry is None:
            return None
        logger.info("Result cache hit %s (cached %s)", fingerprint[:12], entry.cached_at)
        return deserialize_result(entry.result)

    async def put(self, fingerprint: str, result: PipelineResult, summary: str = "") -> None:
        entry = CacheEntry(
            fingerprint=fingerprint,
            result=serialize_result(result, include_source=False),
            cached_at=self._clock(),
            summary=summary,
        )
        try:
            await self._store.put(fingerprint, entry)
            await self._evict()
        except Exception as e:
            self._fall_back("put", e)
            await self._store.put(fingerprint, entry)
            await self._evict()

    async def entries(self) -> list[CacheEntry]:
        """Entries oldest first."""
        try:
            entries = await self._store.list_entries()
        except Exception as e:
            self._fall_back("list", e)
            entries = await self._store.list_entries()
        return sorted(entries, key=lambda e: e.cached_at)

    async def clear(self) -> int:
        entries = await self.entries()
        for entry in entries:
            await self._store.delete(entry.fingerprint)
        return len(entries)

    async def _evict(self) -> None:
        entries = sorted(await self._store.list_entries(), key=lambda e: e.cached_at)
        excess = len(entries) - self._max_entries
        for entry in entries[: max(0, excess)]:
            logger.debug("Evicting cache entry %s", entry.fingerprint[:12])
            await self._store.delete(entry.fingerprint)

    def _fall_back(self, operation: str, error: Exception) -> None:
        logger.warning(
            "Cache store %s failed (%s), using in-memory cache: %s",
            operation,
            type(self._store).__name__,
            error,
        )
        self._store = MemoryCacheStore()


def create_result_cache(settings: Settings) -> ResultCache:
    """Build the configured cache, degrading to memory if the store cannot open."""
    from buildcheck.cache.cache_factory import create_cache_store

    try:
        store = create_cache_store(settings)
    except (OSError, ImportError) as e:
        logger.warning("Cache backend %s unavailable, using memory: %s", settings.cache_backend, e)
        store = MemoryCacheStore()
    return ResultCache(store, max_entries=settings.cache_max_entries)
