# src/cache/json_store.py — v1
"""JSON file-based cache store (default CACHE_BACKEND=json).

One file per fingerprint under CACHE_ROOT.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from buildcheck.cache.base_cache_store import BaseCacheStore
from buildcheck.cache.models import CacheEntry

logger = logging.getLogger(__name__)


class JsonCacheStore(BaseCacheStore):
    """File-based cache store using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def get(self, key: str) -> CacheEntry | None:
        path = self._entry_path(key)
        if not path.exists():
            return None
        try:
            return CacheEntry(**json.loads(path.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Failed to read cache entry %s: %s", key, e)
            return None

    async def put(self, key: str, entry: CacheEntry) -> None:
        path = self._entry_path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(entry.model_dump_json(), encoding="utf-8")
        tmp.replace(path)

    async def delete(self, key: str) -> None:
        self._entry_path(key).unlink(missing_ok=True)

    async def list_entries(self) -> list[CacheEntry]:
        entries: list[CacheEntry] = []
        for path in self._root.glob("*.json"):
            try:
                entries.append(CacheEntry(**json.loads(path.read_text(encoding="utf-8"))))
            except (json.JSONDecodeError, ValidationError) as e:
                logger.warning("Skipping unreadable cache file %s: %s", path.name, e)
        return entries

    def _entry_path(self, key: str) -> Path:
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_key}.json"
