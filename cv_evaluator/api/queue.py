"""Async worker pool for evaluation jobs.

In-process workers consuming a bounded asyncio.Queue of job ids:
- Fixed number of worker tasks (bounded concurrency)
- Bounded queue (submissions beyond it are rejected: back-pressure)
- Graceful shutdown (stop intake, drain, then cancel)

Queued work lives only in process memory. A job whose id is still in the
queue when the process exits stays ``queued`` in the store.
"""

from __future__ import annotations

import asyncio

import structlog

from cv_evaluator.errors import QueueFullError
from cv_evaluator.lifecycle import JobLifecycle
from cv_evaluator.metrics import record_queue_rejection, set_active_workers, set_queue_depth
from cv_evaluator.schemas.evaluation import Job

logger = structlog.get_logger(__name__)


class WorkerPool:
    """Bounded worker pool that runs jobs through the lifecycle manager.

    Args:
        lifecycle: Job lifecycle manager (creates and processes jobs).
        max_workers: Number of jobs that may run concurrently.
        max_queue_size: Jobs that may wait for a worker before submissions
            are rejected.
    """

    def __init__(
        self,
        lifecycle: JobLifecycle,
        max_workers: int = 4,
        max_queue_size: int = 100,
    ) -> None:
        self._lifecycle = lifecycle
        self._max_workers = max_workers
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_queue_size)
        self._workers: list[asyncio.Task] = []
        self._active = 0
        self._accepting = False

    def start(self) -> None:
        """Spawn the worker tasks. Must be called from a running event loop."""
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"evaluation-worker-{i}")
            for i in range(self._max_workers)
        ]
        self._accepting = True
        logger.info("worker_pool_started", max_workers=self._max_workers, max_queue_size=self._queue.maxsize)

    async def submit(self, cv_path: str, report_path: str) -> Job:
        """Create a ``queued`` job and enqueue it.

        Returns as soon as the job row is written; evaluation happens later
        on a worker.

        Raises:
            QueueFullError: the pool is at capacity or shutting down. No job
                row is written in that case.
            StoreWriteError: the job row could not be written.
        """
        if not self._accepting:
            raise QueueFullError("worker pool is not accepting jobs")
        if self._queue.full():
            record_queue_rejection()
            logger.warning("job_rejected_queue_full", queue_depth=self._queue.qsize())
            raise QueueFullError("evaluation queue is full")

        job = self._lifecycle.create_job(cv_path, report_path)
        self._queue.put_nowait(job.id)
        set_queue_depth(self._queue.qsize())

        logger.info("job_submitted", job_id=job.id, queue_depth=self._queue.qsize())
        return job

    async def _worker(self, worker_id: int) -> None:
        while True:
            job_id = await self._queue.get()
            self._active += 1
            set_active_workers(self._active)
            set_queue_depth(self._queue.qsize())
            try:
                await self._lifecycle.process(job_id)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.error("worker_unhandled_error", worker_id=worker_id, job_id=job_id, exc_info=True)
            finally:
                self._active -= 1
                set_active_workers(self._active)
                self._queue.task_done()

    async def shutdown(self, timeout: float = 30.0) -> None:
        """Stop intake, wait up to ``timeout`` seconds for queued and running
        jobs to finish, then cancel the workers."""
        self._accepting = False
        logger.info("worker_pool_draining", queue_depth=self._queue.qsize(), active=self._active)

        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "worker_pool_drain_timeout",
                queue_depth=self._queue.qsize(),
                active=self._active,
            )

        for task in self._workers:
            task.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []
        logger.info("worker_pool_stopped")

    @property
    def pending_count(self) -> int:
        """Number of jobs waiting for a worker."""
        return self._queue.qsize()

    @property
    def active_count(self) -> int:
        """Number of jobs currently executing."""
        return self._active

    @property
    def max_workers(self) -> int:
        return self._max_workers

    @property
    def accepting(self) -> bool:
        return self._accepting
