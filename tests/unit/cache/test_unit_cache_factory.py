# tests/unit/cache/test_cache_factory.py — v2
"""Tests for cache/cache_factory.py: backend selection."""

from __future__ import annotations

from buildcheck.cache.cache_factory import create_cache_store
from buildcheck.cache.json_store import JsonCacheStore
from buildcheck.cache.memory_store import MemoryCacheStore
from buildcheck.cache.sqlite_store import SqliteCacheStore
from buildcheck.config.settings import Settings


class TestCreateCacheStore:
    def test_json_backend(self, tmp_path):
        s = Settings(_env_file=None, cache_backend="json", cache_root=tmp_path)
        assert isinstance(create_cache_store(s), JsonCacheStore)

    def test_sqlite_backend(self, tmp_path):
        s = Settings(_env_file=None, cache_backend="sqlite", cache_root=tmp_path)
        store = create_cache_store(s)
        assert isinstance(store, SqliteCacheStore)
        assert (tmp_path / "buildcheck_cache.db").exists()
        store.close()

    def test_memory_backend(self):
        s = Settings(_env_file=None, cache_backend="memory")
        assert isinstance(create_cache_store(s), MemoryCacheStore)
