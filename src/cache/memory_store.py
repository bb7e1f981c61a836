# src/cache/memory_store.py — v1
"""In-process cache store; also the fallback when persistence fails."""

from __future__ import annotations

from buildcheck.cache.base_cache_store import BaseCacheStore
from buildcheck.cache.models import CacheEntry


class MemoryCacheStore(BaseCacheStore):
    """Dict-backed store. Lost on process exit."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}

    async def get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    async def put(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def list_entries(self) -> list[CacheEntry]:
        return list(self._entries.values())
