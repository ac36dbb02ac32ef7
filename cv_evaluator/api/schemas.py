"""Request/response Pydantic models for the API layer."""

from __future__ import annotations

from pydantic import BaseModel, Field

from cv_evaluator.schemas.evaluation import EvaluationResult, Job, JobStatus


class JobCreatedResponse(BaseModel):
    """Response after successfully submitting an evaluation."""

    id: str
    status: str = JobStatus.QUEUED.value


class JobError(BaseModel):
    """Why a job failed."""

    kind: str
    message: str | None = None


class JobStatusResponse(BaseModel):
    """Response for job status polling.

    ``result`` is present only when completed; ``error`` only when failed.
    """

    id: str
    status: str = Field(description="queued | processing | completed | failed")
    result: EvaluationResult | None = None
    error: JobError | None = None

    @classmethod
    def from_job(cls, job: Job) -> JobStatusResponse:
        response = cls(id=job.id, status=job.status.value)
        if job.status == JobStatus.COMPLETED:
            response.result = job.result
        elif job.status == JobStatus.FAILED and job.error_kind is not None:
            response.error = JobError(kind=job.error_kind.value, message=job.error_message)
        return response


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    queue_depth: int = 0
    active_workers: int = 0
    max_workers: int = 4
    db_connected: bool = True
    version: str = "0.1.0"


class ErrorResponse(BaseModel):
    """Error body produced by HTTPException."""

    detail: str
