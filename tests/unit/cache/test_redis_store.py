# tests/unit/cache/test_redis_store.py — v2
"""Tests for cache/redis_store.py: against a mocked redis client."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from buildcheck.cache.models import CacheEntry
from buildcheck.cache.redis_store import RedisCacheStore


class FakeRedis:
    """Minimal in-memory stand-in for the redis client calls the store makes."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.sets: dict[str, set[str]] = {}

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value):
        self.values[key] = value

    def delete(self, key):
        self.values.pop(key, None)

    def sadd(self, key, member):
        self.sets.setdefault(key, set()).add(member)

    def srem(self, key, member):
        self.sets.get(key, set()).discard(member)

    def smembers(self, key):
        return set(self.sets.get(key, set()))

    def pipeline(self):
        outer = self
        calls = []

        class _Pipe:
            def __getattr__(self, name):
                return lambda *a: calls.append((name, a))

            def execute(self):
                for name, args in calls:
                    getattr(outer, name)(*args)

        return _Pipe()

    def close(self):
        pass


def _entry(key: str) -> CacheEntry:
    return CacheEntry(
        fingerprint=key,
        result={"warnings": []},
        cached_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def client():
    return FakeRedis()


@pytest.fixture
def store(client):
    return RedisCacheStore(redis_url="redis://unused", client=client)


class TestRedisCacheStore:
    @pytest.mark.asyncio
    async def test_put_get(self, store, client):
        await store.put("k1", _entry("k1"))
        assert "buildcheck:result:k1" in client.values
        assert client.smembers("buildcheck:result:__index__") == {"k1"}
        assert (await store.get("k1")).fingerprint == "k1"

    @pytest.mark.asyncio
    async def test_delete_removes_index(self, store, client):
        await store.put("k1", _entry("k1"))
        await store.delete("k1")
        assert await store.get("k1") is None
        assert client.smembers("buildcheck:result:__index__") == set()

    @pytest.mark.asyncio
    async def test_list_prunes_expired(self, store, client):
        await store.put("k1", _entry("k1"))
        await store.put("k2", _entry("k2"))
        client.values.pop("buildcheck:result:k2")
        entries = await store.list_entries()
        assert [e.fingerprint for e in entries] == ["k1"]
        assert client.smembers("buildcheck:result:__index__") == {"k1"}

    @pytest.mark.asyncio
    async def test_corrupt_value(self, store, client):
        client.values["buildcheck:result:bad"] = "{oops"
        assert await store.get("bad") is None

    def test_close(self):
        client = MagicMock()
        RedisCacheStore(redis_url="redis://unused", client=client).close()
        client.close.assert_called_once()
