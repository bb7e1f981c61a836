# src/cache/cache_factory.py — v3
"""Factory for cache store instantiation.

Backends are imported lazily so the redis dependency is only needed when
CACHE_BACKEND=redis.
"""

from __future__ import annotations

from pathlib import Path

from buildcheck.cache.base_cache_store import BaseCacheStore
from buildcheck.config.settings import Settings

SQLITE_FILENAME = "buildcheck_cache.db"


class UnsupportedBackendError(ValueError):
    """Raised for an unknown CACHE_BACKEND value."""


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured cache backend (JSON files by default)."""
    backend = "json" if settings is None else settings.cache_backend
    cache_root = Path("~/.buildcheck/cache") if settings is None else settings.cache_root

    if backend == "json":
        from buildcheck.cache.json_store import JsonCacheStore

        return JsonCacheStore(cache_root=cache_root)

    if backend == "sqlite":
        from buildcheck.cache.sqlite_store import SqliteCacheStore

        return SqliteCacheStore(db_path=Path(cache_root).expanduser() / SQLITE_FILENAME)

    if backend == "redis":
        from buildcheck.cache.redis_store import RedisCacheStore

        if settings is None or not settings.cache_redis_url:
            raise UnsupportedBackendError(
                "CACHE_REDIS_URL must be set when CACHE_BACKEND=redis"
            )
        return RedisCacheStore(redis_url=settings.cache_redis_url)

    if backend == "memory":
        from buildcheck.cache.memory_store import MemoryCacheStore

        return MemoryCacheStore()

    raise UnsupportedBackendError(f"Unsupported cache backend: {backend!r}")
