# tests/unit/api/test_facade.py — v1
"""Tests for api/facade.py: cached runs and background jobs."""

from __future__ import annotations

import asyncio
from unittest.mock import Mock

import pytest

from buildcheck.api.context import AppContext
from buildcheck.api.facade import PipelineService
from buildcheck.core.models import PipelineOptions
from buildcheck.llm.base_client import BaseLLMClient
from buildcheck.llm.cancellation import run_cancellable
from buildcheck.pipeline.errors import PipelineInputError


class BlockingLLM(BaseLLMClient):
    """Never answers; only a cancellation token gets a call out."""

    def __init__(self):
        self.started = asyncio.Event()

    @property
    def provider_name(self) -> str:
        return "blocking"

    async def complete(self, messages, system=None, max_tokens=4096, temperature=0.2,
                       model=None, thinking_budget=None, cancel=None):
        self.started.set()
        if cancel is not None:
            cancel.raise_if_cancelled()
        await run_cancellable(asyncio.Event().wait(), cancel)


def _service(settings, llm=None) -> PipelineService:
    return PipelineService(AppContext(settings, llm_client=llm))


class Recorder:
    def __init__(self):
        self.events = []

    async def __call__(self, event):
        self.events.append(event)


class TestAnalyze:
    @pytest.mark.asyncio
    async def test_empty_rejected(self, settings):
        with pytest.raises(PipelineInputError):
            await _service(settings).analyze([])

    @pytest.mark.asyncio
    async def test_second_run_served_from_cache(self, settings, ifc_file):
        service = _service(settings)
        first = await service.analyze([ifc_file])
        service.context.orchestrator = Mock(side_effect=AssertionError("orchestrator called"))

        recorder = Recorder()
        second = await service.analyze([ifc_file], on_progress=recorder)
        assert second.project.name == first.project.name
        assert second.source_model is None
        assert [(e.stage, e.percent) for e in recorder.events] == [("cache", 100)]
        assert recorder.events[0].stages_completed == tuple(first.stages_completed)

    @pytest.mark.asyncio
    async def test_options_change_fingerprint(self, settings, ifc_file):
        service = _service(settings)
        await service.analyze([ifc_file])
        entries = await service.context.result_cache.entries()
        await service.analyze([ifc_file], PipelineOptions(analysis_depth="quick"))
        assert len(await service.context.result_cache.entries()) == len(entries) + 1

    @pytest.mark.asyncio
    async def test_use_cache_false_reruns(self, settings, ifc_file):
        service = _service(settings)
        await service.analyze([ifc_file], use_cache=False)
        assert await service.context.result_cache.entries() == []


class TestJobs:
    @pytest.mark.asyncio
    async def test_submit_and_join(self, settings, ifc_file, boq_file):
        service = _service(settings)
        job = await service.submit([ifc_file, boq_file])
        assert job.status == "pending"
        assert job.file_names == ["casa.ifc", "mapa.csv"]

        await service.join()
        done = await service.get_job(job.id)
        assert done.status == "completed"
        assert done.progress == 100
        assert done.result["project"]["name"] == "Casa Azul"
        assert done.stages_completed[-1] == "export"
        assert service.cancel(job.id) is False

    @pytest.mark.asyncio
    async def test_empty_submission_fails_job(self, settings):
        service = _service(settings)
        job = await service.submit([])
        await service.join()
        failed = await service.get_job(job.id)
        assert failed.status == "failed"
        assert failed.error == "No files submitted"

    @pytest.mark.asyncio
    async def test_cancel_aborts_reasoning_calls(self, settings, ifc_file):
        llm = BlockingLLM()
        service = _service(settings, llm)
        job = await service.submit([ifc_file])
        await asyncio.wait_for(llm.started.wait(), timeout=5)

        assert service.cancel(job.id) is True
        await asyncio.wait_for(service.join(), timeout=5)

        done = await service.get_job(job.id)
        assert done.status == "completed"
        assert "ai_sequence: cancelled by user" in done.warnings

    @pytest.mark.asyncio
    async def test_unknown_job(self, settings):
        service = _service(settings)
        assert await service.get_job("nope") is None
        assert service.cancel("nope") is False
