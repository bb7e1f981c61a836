# src/cache/redis_store.py — v1
"""Redis-based cache store (CACHE_BACKEND=redis).

Requires the 'redis' package (``pip install buildcheck[redis]``).
Lets several instances share cached results.
"""

from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from buildcheck.cache.base_cache_store import BaseCacheStore
from buildcheck.cache.models import CacheEntry

logger = logging.getLogger(__name__)

_KEY_PREFIX = "buildcheck:result:"
_INDEX_KEY = "buildcheck:result:__index__"


class RedisCacheStore(BaseCacheStore):
    """Redis-backed result cache."""

    def __init__(self, redis_url: str, client: object | None = None) -> None:
        if client is None:
            import redis

            client = redis.Redis.from_url(redis_url, decode_responses=True)
        self._client = client

    async def get(self, key: str) -> CacheEntry | None:
        data = self._client.get(f"{_KEY_PREFIX}{key}")
        if data is None:
            return None
        try:
            return CacheEntry(**json.loads(data))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Failed to deserialize cache entry %s: %s", key, e)
            return None

    async def put(self, key: str, entry: CacheEntry) -> None:
        pipe = self._client.pipeline()
        pipe.set(f"{_KEY_PREFIX}{key}", entry.model_dump_json())
        # Index set backs list_entries, Redis has no prefix listing without SCAN
        pipe.sadd(_INDEX_KEY, key)
        pipe.execute()

    async def delete(self, key: str) -> None:
        pipe = self._client.pipeline()
        pipe.delete(f"{_KEY_PREFIX}{key}")
        pipe.srem(_INDEX_KEY, key)
        pipe.execute()

    async def list_entries(self) -> list[CacheEntry]:
        entries: list[CacheEntry] = []
        for key in self._client.smembers(_INDEX_KEY):
            entry = await self.get(key)
            if entry is None:
                # Expired or evicted behind our back
                self._client.srem(_INDEX_KEY, key)
                continue
            entries.append(entry)
        return entries

    def close(self) -> None:
        self._client.close()
