# tests/unit/jobs/test_job_stores.py — v1
"""Tests for the in-memory and SQLite job stores (shared contract)."""

from __future__ import annotations

import pytest

from buildcheck.core.models import PipelineOptions
from buildcheck.jobs.memory_store import InMemoryJobStore
from buildcheck.jobs.models import JobProgressUpdate, StageProgress
from buildcheck.jobs.sqlite_store import SqliteJobStore


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        s = InMemoryJobStore()
    else:
        s = SqliteJobStore(tmp_path / "jobs.db")
    yield s
    s.close()


class TestJobStoreContract:
    @pytest.mark.asyncio
    async def test_create_pending(self, store):
        job = await store.create(["a.ifc"], PipelineOptions(analysis_depth="deep"))
        assert job.id.startswith("job_")
        fetched = await store.get(job.id)
        assert fetched.status == "pending"
        assert fetched.progress == 0
        assert fetched.file_names == ["a.ifc"]
        assert fetched.options.analysis_depth == "deep"

    @pytest.mark.asyncio
    async def test_unknown_job(self, store):
        assert await store.get("job_missing") is None
        await store.update_progress("job_missing", JobProgressUpdate(progress=10))

    @pytest.mark.asyncio
    async def test_first_update_marks_running(self, store):
        job = await store.create([], PipelineOptions())
        await store.update_progress(job.id, JobProgressUpdate(current_stage="classify", progress=0))
        fetched = await store.get(job.id)
        assert fetched.status == "running"
        assert fetched.started_at is not None
        assert fetched.current_stage == "classify"

    @pytest.mark.asyncio
    async def test_progress_never_decreases(self, store):
        job = await store.create([], PipelineOptions())
        await store.update_progress(job.id, JobProgressUpdate(progress=40))
        await store.update_progress(job.id, JobProgressUpdate(progress=25))
        assert (await store.get(job.id)).progress == 40
        await store.update_progress(job.id, JobProgressUpdate(progress=250))
        assert (await store.get(job.id)).progress == 100

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, store):
        job = await store.create([], PipelineOptions())
        await store.update_progress(
            job.id,
            JobProgressUpdate(
                current_stage="parse_ifc",
                progress=10,
                stage_progress={"parse_ifc": StageProgress(percent=50, message="half")},
                stages_completed=["classify"],
                warnings=["w1"],
            ),
        )
        await store.update_progress(
            job.id,
            JobProgressUpdate(stage_progress={"ai_sequence": StageProgress(percent=10)}),
        )
        fetched = await store.get(job.id)
        assert fetched.current_stage == "parse_ifc"
        assert fetched.progress == 10
        assert fetched.stages_completed == ["classify"]
        assert fetched.warnings == ["w1"]
        assert fetched.stage_progress["parse_ifc"].message == "half"
        assert fetched.stage_progress["ai_sequence"].percent == 10

    @pytest.mark.asyncio
    async def test_shorter_list_snapshot_ignored(self, store):
        job = await store.create([], PipelineOptions())
        await store.update_progress(job.id, JobProgressUpdate(warnings=["a", "b"]))
        await store.update_progress(job.id, JobProgressUpdate(warnings=["a"]))
        assert (await store.get(job.id)).warnings == ["a", "b"]

    @pytest.mark.asyncio
    async def test_complete(self, store):
        job = await store.create([], PipelineOptions())
        await store.update_progress(job.id, JobProgressUpdate(progress=60, current_stage="export"))
        await store.complete(job.id, {"project": {"name": "Casa"}})
        fetched = await store.get(job.id)
        assert fetched.status == "completed"
        assert fetched.progress == 100
        assert fetched.result == {"project": {"name": "Casa"}}
        assert fetched.current_stage is None
        assert fetched.completed_at is not None

    @pytest.mark.asyncio
    async def test_single_terminal_transition(self, store):
        job = await store.create([], PipelineOptions())
        await store.fail(job.id, "boom")
        await store.complete(job.id, {"late": True})
        await store.fail(job.id, "second")
        await store.update_progress(job.id, JobProgressUpdate(progress=90, current_stage="x"))
        fetched = await store.get(job.id)
        assert fetched.status == "failed"
        assert fetched.error == "boom"
        assert fetched.result is None
        assert fetched.current_stage is None
        assert fetched.progress == 0


class TestInMemoryJobStore:
    @pytest.mark.asyncio
    async def test_evicts_oldest_at_capacity(self):
        store = InMemoryJobStore(max_jobs=2)
        first = await store.create(["1"], PipelineOptions())
        second = await store.create(["2"], PipelineOptions())
        third = await store.create(["3"], PipelineOptions())
        assert len(store) == 2
        assert await store.get(first.id) is None
        assert await store.get(second.id) is not None
        assert await store.get(third.id) is not None

    @pytest.mark.asyncio
    async def test_get_returns_copy(self):
        store = InMemoryJobStore()
        job = await store.create([], PipelineOptions())
        snapshot = await store.get(job.id)
        snapshot.progress = 99
        assert (await store.get(job.id)).progress == 0


class TestSqliteJobStore:
    @pytest.mark.asyncio
    async def test_durable_across_instances(self, tmp_path):
        db = tmp_path / "jobs.db"
        first = SqliteJobStore(db)
        job = await first.create(["a.ifc"], PipelineOptions())
        await first.update_progress(job.id, JobProgressUpdate(progress=35))
        first.close()

        second = SqliteJobStore(db)
        fetched = await second.get(job.id)
        assert fetched.status == "running"
        assert fetched.progress == 35
        second.close()

    @pytest.mark.asyncio
    async def test_update_failure_is_logged_not_raised(self, tmp_path, caplog):
        store = SqliteJobStore(tmp_path / "jobs.db")
        job = await store.create([], PipelineOptions())
        store.close()
        await store.update_progress(job.id, JobProgressUpdate(progress=5))
        assert "Job store write failed" in caplog.text
