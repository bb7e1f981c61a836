# src/cache/base_cache_store.py — v1
"""Abstract cache store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from buildcheck.cache.models import CacheEntry


class BaseCacheStore(ABC):
    """Unified interface for cache storage backends.

    Stores are dumb key/value holders; capacity and eviction are the
    ResultCache's job.
    """

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve cache entry by fingerprint key."""

    @abstractmethod
    async def put(self, key: str, entry: CacheEntry) -> None:
        """Store cache entry (upsert)."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove cache entry; missing keys are ignored."""

    @abstractmethod
    async def list_entries(self) -> list[CacheEntry]:
        """List all cached entries."""

    def close(self) -> None:
        """Release backend resources."""
