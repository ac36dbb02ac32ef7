"""Prometheus metrics for the evaluator.

Tracks job submissions, outcomes, queue depth, and context fallbacks.
Metrics are exposed via /api/v1/metrics endpoint in Prometheus format.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, generate_latest

# ---------------------------------------------------------------------------
# Metric definitions
# ---------------------------------------------------------------------------

JOBS_SUBMITTED = Counter(
    "cv_eval_jobs_submitted_total",
    "Total evaluation jobs submitted",
)
JOBS_COMPLETED = Counter(
    "cv_eval_jobs_completed_total",
    "Total evaluation jobs that reached a terminal state",
    ["status"],
)
JOBS_FAILED = Counter(
    "cv_eval_jobs_failed_total",
    "Failed evaluation jobs by error kind",
    ["error_kind"],
)
QUEUE_DEPTH = Gauge(
    "cv_eval_queue_depth",
    "Jobs waiting for a worker",
)
ACTIVE_WORKERS = Gauge(
    "cv_eval_active_workers",
    "Workers currently running a job",
)
CONTEXT_FALLBACKS = Counter(
    "cv_eval_context_fallbacks_total",
    "Runs that used the default guideline context",
)
QUEUE_REJECTIONS = Counter(
    "cv_eval_queue_rejections_total",
    "Submissions rejected because the queue was full",
)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def record_job_submitted() -> None:
    JOBS_SUBMITTED.inc()


def record_job_completed(status: str) -> None:
    JOBS_COMPLETED.labels(status=status).inc()


def record_job_failed(error_kind: str) -> None:
    JOBS_FAILED.labels(error_kind=error_kind).inc()


def set_queue_depth(depth: int) -> None:
    QUEUE_DEPTH.set(depth)


def set_active_workers(count: int) -> None:
    ACTIVE_WORKERS.set(count)


def record_context_fallback() -> None:
    CONTEXT_FALLBACKS.inc()


def record_queue_rejection() -> None:
    QUEUE_REJECTIONS.inc()


def get_metrics_text() -> str:
    """Generate Prometheus metrics text output."""
    return generate_latest().decode("utf-8")
