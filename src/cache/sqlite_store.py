# src/cache/sqlite_store.py — v1
"""SQLite-based cache store (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3. Entries are indexed by cached_at for eviction scans.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path

from pydantic import ValidationError

from buildcheck.cache.base_cache_store import BaseCacheStore
from buildcheck.cache.models import CacheEntry

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS result_cache (
    fingerprint TEXT PRIMARY KEY,
    data TEXT NOT NULL,
    summary TEXT NOT NULL DEFAULT '',
    cached_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_result_cache_cached_at ON result_cache(cached_at);
"""


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed result cache."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get(self, key: str) -> CacheEntry | None:
        row = self._conn.execute(
            "SELECT data FROM result_cache WHERE fingerprint = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        return self._decode(key, row[0])

    async def put(self, key: str, entry: CacheEntry) -> None:
        self._conn.execute(
            """INSERT OR REPLACE INTO result_cache (fingerprint, data, summary, cached_at)
               VALUES (?, ?, ?, ?)""",
            (key, entry.model_dump_json(), entry.summary, entry.cached_at.isoformat()),
        )
        self._conn.commit()

    async def delete(self, key: str) -> None:
        self._conn.execute("DELETE FROM result_cache WHERE fingerprint = ?", (key,))
        self._conn.commit()

    async def list_entries(self) -> list[CacheEntry]:
        rows = self._conn.execute(
            "SELECT fingerprint, data FROM result_cache ORDER BY cached_at"
        ).fetchall()
        return [e for e in (self._decode(k, d) for k, d in rows) if e is not None]

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _decode(key: str, data: str) -> CacheEntry | None:
        try:
            return CacheEntry(**json.loads(data))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Failed to deserialize cache entry %s: %s", key, e)
            return None
