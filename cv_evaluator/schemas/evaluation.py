"""Domain models for evaluation jobs and their results."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from cv_evaluator.errors import ErrorKind


class JobStatus(StrEnum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class EvaluationResult(BaseModel):
    """Structured score and feedback produced by stage-2 evaluation."""

    model_config = ConfigDict(frozen=True)

    cv_match_rate: float = Field(ge=0.0, le=1.0)
    cv_feedback: str = ""
    project_score: float = Field(ge=0.0, le=10.0)
    project_feedback: str = ""
    overall_summary: str = ""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Job(BaseModel):
    """One evaluation request tracked from submission to a terminal state."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    status: JobStatus = JobStatus.QUEUED
    cv_path: str
    report_path: str
    result: EvaluationResult | None = None
    error_kind: ErrorKind | None = None
    error_message: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
