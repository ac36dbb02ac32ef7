"""Tests for the bounded worker pool."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from conftest import FakeGateway, make_pipeline, make_retriever

from cv_evaluator.api.queue import WorkerPool
from cv_evaluator.errors import QueueFullError
from cv_evaluator.lifecycle import JobLifecycle
from cv_evaluator.schemas.evaluation import EvaluationResult, JobStatus

RESULT = EvaluationResult(cv_match_rate=0.9, project_score=9.0)


class GatedPipeline:
    """Pipeline whose runs block until released; tracks peak concurrency."""

    def __init__(self):
        self.release = asyncio.Event()
        self.running = 0
        self.peak = 0
        self.started = 0

    async def run(self, cv_path, report_path):
        self.running += 1
        self.started += 1
        self.peak = max(self.peak, self.running)
        try:
            await self.release.wait()
            return RESULT
        finally:
            self.running -= 1


async def _settle():
    for _ in range(10):
        await asyncio.sleep(0)


class TestWorkerPool:
    @pytest.mark.asyncio
    async def test_rejects_before_start(self, store):
        pool = WorkerPool(JobLifecycle(store, GatedPipeline()), max_workers=1)
        with pytest.raises(QueueFullError):
            await pool.submit("cv.pdf", "report.pdf")

    @pytest.mark.asyncio
    async def test_submit_returns_queued_job_and_completes(self, store):
        pipeline = GatedPipeline()
        lifecycle = JobLifecycle(store, pipeline)
        pool = WorkerPool(lifecycle, max_workers=2, max_queue_size=10)
        pool.start()

        job = await pool.submit("cv.pdf", "report.pdf")
        assert job.status == JobStatus.QUEUED

        pipeline.release.set()
        await pool.shutdown(timeout=5)
        assert lifecycle.get_status(job.id).status == JobStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, store):
        pipeline = GatedPipeline()
        pool = WorkerPool(JobLifecycle(store, pipeline), max_workers=2, max_queue_size=10)
        pool.start()

        for _ in range(5):
            await pool.submit("cv.pdf", "report.pdf")
        await _settle()

        assert pipeline.running == 2
        assert pool.active_count == 2
        assert pool.pending_count == 3

        pipeline.release.set()
        await pool.shutdown(timeout=5)
        assert pipeline.peak == 2
        assert pipeline.started == 5

    @pytest.mark.asyncio
    async def test_full_queue_rejects_without_creating_job(self, store):
        pipeline = GatedPipeline()
        lifecycle = JobLifecycle(store, pipeline)
        lifecycle.create_job = MagicMock(wraps=lifecycle.create_job)
        pool = WorkerPool(lifecycle, max_workers=1, max_queue_size=1)
        pool.start()

        await pool.submit("cv.pdf", "report.pdf")
        await _settle()  # first job picked up by the only worker
        await pool.submit("cv.pdf", "report.pdf")  # fills the queue
        with pytest.raises(QueueFullError):
            await pool.submit("cv.pdf", "report.pdf")
        assert lifecycle.create_job.call_count == 2

        pipeline.release.set()
        await pool.shutdown(timeout=5)

    @pytest.mark.asyncio
    async def test_shutdown_drains_queued_jobs(self, store):
        pipeline = GatedPipeline()
        lifecycle = JobLifecycle(store, pipeline)
        pool = WorkerPool(lifecycle, max_workers=1, max_queue_size=10)
        pool.start()
        jobs = [await pool.submit("cv.pdf", "report.pdf") for _ in range(3)]

        pipeline.release.set()
        await pool.shutdown(timeout=5)

        assert all(lifecycle.get_status(j.id).status == JobStatus.COMPLETED for j in jobs)
        with pytest.raises(QueueFullError):
            await pool.submit("cv.pdf", "report.pdf")

    @pytest.mark.asyncio
    async def test_shutdown_timeout_cancels_running_job(self, store):
        pipeline = GatedPipeline()
        lifecycle = JobLifecycle(store, pipeline)
        pool = WorkerPool(lifecycle, max_workers=1, max_queue_size=10)
        pool.start()
        job = await pool.submit("cv.pdf", "report.pdf")
        await _settle()

        await pool.shutdown(timeout=0.05)

        assert lifecycle.get_status(job.id).status == JobStatus.FAILED

    @pytest.mark.asyncio
    async def test_worker_survives_unexpected_error(self, store):
        lifecycle = MagicMock()
        calls = []

        async def process(job_id):
            calls.append(job_id)
            if len(calls) == 1:
                raise RuntimeError("bug")

        lifecycle.create_job = MagicMock(side_effect=lambda cv, report: SimpleNamespace(id=f"job-{cv}"))
        lifecycle.process = process
        pool = WorkerPool(lifecycle, max_workers=1, max_queue_size=10)
        pool.start()

        await pool.submit("a", "r")
        await pool.submit("b", "r")
        await pool.shutdown(timeout=5)
        assert len(calls) == 2


class TestSubmissionScenario:
    @pytest.mark.asyncio
    async def test_queued_immediately_then_completed(self, store, tmp_path):
        cv = tmp_path / "cv.txt"
        cv.write_text("Software Engineer, 3 years, Go/Python/React", encoding="utf-8")
        report = tmp_path / "report.txt"
        report.write_text("Built REST API with Go, PostgreSQL, Docker", encoding="utf-8")

        lifecycle = JobLifecycle(store, make_pipeline(FakeGateway(), make_retriever(["rubric"])))
        pool = WorkerPool(lifecycle, max_workers=1, max_queue_size=10)
        pool.start()

        job = await pool.submit(str(cv), str(report))
        assert lifecycle.get_status(job.id).status == JobStatus.QUEUED

        await pool.shutdown(timeout=5)
        stored = lifecycle.get_status(job.id)
        assert stored.status == JobStatus.COMPLETED
        assert 0.0 <= stored.result.cv_match_rate <= 1.0
        assert 0.0 <= stored.result.project_score <= 10.0
