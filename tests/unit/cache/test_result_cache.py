# tests/unit/cache/test_result_cache.py — v1
"""Tests for cache/result_cache.py: bounded cache with memory fallback."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from buildcheck.cache.json_store import JsonCacheStore
from buildcheck.cache.memory_store import MemoryCacheStore
from buildcheck.cache.result_cache import ResultCache, create_result_cache
from buildcheck.config.settings import Settings
from buildcheck.core.models import ExportFile, ProjectRecord
from buildcheck.pipeline.result import PipelineResult


class StepClock:
    """Returns a strictly increasing timestamp per call."""

    def __init__(self):
        self.now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


def _result(name: str = "Casa") -> PipelineResult:
    return PipelineResult(
        project=ProjectRecord(name=name),
        warnings=["parse_pdf: no text"],
        stages_completed=["classify", "parse_ifc"],
        exports={"budget_xlsx": ExportFile(name="b.xlsx", media_type="x", content=b"\x00\x01")},
        source_model=b"ISO-10303-21;",
    )


class TestResultCache:
    @pytest.mark.asyncio
    async def test_miss_then_hit(self):
        cache = ResultCache(MemoryCacheStore())
        assert await cache.get("fp") is None
        await cache.put("fp", _result(), "casa.ifc (10 B)")
        hit = await cache.get("fp")
        assert hit is not None
        assert hit.project.name == "Casa"
        assert hit.warnings == ["parse_pdf: no text"]
        assert hit.exports["budget_xlsx"].content == b"\x00\x01"

    @pytest.mark.asyncio
    async def test_source_model_not_cached(self):
        cache = ResultCache(MemoryCacheStore())
        await cache.put("fp", _result())
        assert (await cache.get("fp")).source_model is None

    @pytest.mark.asyncio
    async def test_evicts_oldest_beyond_capacity(self):
        cache = ResultCache(MemoryCacheStore(), max_entries=2, clock=StepClock())
        for key in ("a", "b", "c"):
            await cache.put(key, _result(key))
        entries = await cache.entries()
        assert [e.fingerprint for e in entries] == ["b", "c"]
        assert await cache.get("a") is None

    @pytest.mark.asyncio
    async def test_clear(self):
        cache = ResultCache(MemoryCacheStore(), clock=StepClock())
        await cache.put("a", _result())
        await cache.put("b", _result())
        assert await cache.clear() == 2
        assert await cache.entries() == []

    @pytest.mark.asyncio
    async def test_falls_back_when_store_fails(self, tmp_path):
        broken = AsyncMock()
        broken.get.side_effect = OSError("disk gone")
        broken.put.side_effect = OSError("disk gone")
        cache = ResultCache(broken)
        assert cache.degraded is False

        assert await cache.get("fp") is None
        assert cache.degraded is True
        await cache.put("fp", _result())
        assert (await cache.get("fp")).project.name == "Casa"

    @pytest.mark.asyncio
    async def test_persistent_store(self, tmp_path):
        store = JsonCacheStore(tmp_path)
        await ResultCache(store).put("fp", _result())
        again = ResultCache(JsonCacheStore(tmp_path))
        assert (await again.get("fp")).project.name == "Casa"


class TestCreateResultCache:
    def test_uses_configured_store(self, tmp_path):
        s = Settings(_env_file=None, cache_backend="json", cache_root=tmp_path, cache_max_entries=3)
        cache = create_result_cache(s)
        assert isinstance(cache.store, JsonCacheStore)

    def test_degrades_when_store_cannot_open(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        s = Settings(_env_file=None, cache_backend="json", cache_root=blocker / "cache")
        cache = create_result_cache(s)
        assert cache.degraded is True
