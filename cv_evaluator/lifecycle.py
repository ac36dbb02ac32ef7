"""Job lifecycle: the state machine every evaluation job moves through.

  queued → processing → completed
                      ↘ failed

Transitions are monotonic. A job carries a result only when completed and an
error classification only when failed. Each job is mutated by exactly one
worker task, so transitions never contend on the same row.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import structlog

from cv_evaluator.errors import (
    ErrorKind,
    EvaluationError,
    InvalidTransitionError,
    JobNotFoundError,
    StoreWriteError,
)
from cv_evaluator.graphs.evaluation_workflow import EvaluationPipeline
from cv_evaluator.metrics import record_job_completed, record_job_failed, record_job_submitted
from cv_evaluator.persistence.repository import JobStore
from cv_evaluator.schemas.evaluation import EvaluationResult, Job, JobStatus

logger = structlog.get_logger(__name__)

ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.QUEUED: frozenset({JobStatus.PROCESSING}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


def classify_error(exc: BaseException) -> ErrorKind:
    if isinstance(exc, EvaluationError):
        return exc.kind
    return ErrorKind.INTERNAL_ERROR


class JobLifecycle:
    """Creates jobs, applies status transitions, and runs a job's pipeline.

    Args:
        store: Job store, owned by the composition root.
        pipeline: Evaluation pipeline used to process jobs.
    """

    def __init__(self, store: JobStore, pipeline: EvaluationPipeline) -> None:
        self._store = store
        self._pipeline = pipeline

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @staticmethod
    def _transition(job: Job, status: JobStatus, **changes) -> Job:
        if status not in ALLOWED_TRANSITIONS[job.status]:
            raise InvalidTransitionError(
                f"job {job.id}: {job.status.value} → {status.value} is not allowed"
            )
        return job.model_copy(
            update={"status": status, "updated_at": datetime.now(timezone.utc), **changes}
        )

    def create_job(self, cv_path: str, report_path: str) -> Job:
        """Persist a new job in ``queued``. Raises StoreWriteError."""
        job = Job(cv_path=cv_path, report_path=report_path)
        self._store.create(job)
        record_job_submitted()
        return job

    def get_status(self, job_id: str) -> Job:
        """Current snapshot of a job. Raises JobNotFoundError."""
        return self._store.find_by_id(job_id)

    def begin(self, job_id: str) -> Job:
        job = self._store.find_by_id(job_id)
        started = self._transition(job, JobStatus.PROCESSING)
        self._store.update(started)
        return started

    def succeed(self, job: Job, result: EvaluationResult) -> Job:
        completed = self._transition(job, JobStatus.COMPLETED, result=result)
        self._store.update(completed)
        record_job_completed(JobStatus.COMPLETED.value)
        return completed

    def fail(self, job: Job, error: BaseException) -> Job:
        kind = classify_error(error)
        failed = self._transition(
            job,
            JobStatus.FAILED,
            result=None,
            error_kind=kind,
            error_message=str(error) or type(error).__name__,
        )
        self._store.update(failed)
        record_job_completed(JobStatus.FAILED.value)
        record_job_failed(kind.value)
        return failed

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def process(self, job_id: str) -> Job | None:
        """Run one job from ``queued`` to a terminal state.

        Returns the final job snapshot, or None when a store operation
        failed and the job was left in its last persisted state.
        """
        with structlog.contextvars.bound_contextvars(job_id=job_id):
            try:
                job = self.begin(job_id)
            except (JobNotFoundError, StoreWriteError, InvalidTransitionError) as exc:
                logger.error("job_begin_failed", error=str(exc))
                return None

            logger.info("job_started")
            try:
                result = await self._pipeline.run(job.cv_path, job.report_path)
            except asyncio.CancelledError:
                logger.warning("job_cancelled")
                self._fail_quietly(job, RuntimeError("cancelled during shutdown"))
                raise
            except Exception as exc:
                logger.error(
                    "job_failed",
                    error_kind=classify_error(exc).value,
                    error=str(exc),
                    exc_info=True,
                )
                return self._fail_quietly(job, exc)

            try:
                completed = self.succeed(job, result)
            except (StoreWriteError, JobNotFoundError) as exc:
                logger.error("job_complete_persist_failed", error=str(exc))
                return None

            logger.info(
                "job_completed",
                cv_match_rate=result.cv_match_rate,
                project_score=result.project_score,
            )
            return completed

    def _fail_quietly(self, job: Job, error: BaseException) -> Job | None:
        try:
            return self.fail(job, error)
        except (StoreWriteError, JobNotFoundError) as exc:
            logger.error("job_fail_persist_failed", error=str(exc))
            return None
