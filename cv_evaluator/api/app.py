"""FastAPI application for the CV evaluator.

Accepts a CV and a project report, evaluates them asynchronously, and serves
the result by job id.

Usage:
    uvicorn cv_evaluator.api.app:app --reload          # Development
    python run.py serve --host 0.0.0.0 --port 8080     # Production
"""

from __future__ import annotations

import asyncio
import os
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import Depends, FastAPI, File, HTTPException, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from cv_evaluator.api.dependencies import AppComponents, get_components, get_lifecycle, get_worker_pool
from cv_evaluator.api.queue import WorkerPool
from cv_evaluator.api.schemas import ErrorResponse, HealthResponse, JobCreatedResponse, JobStatusResponse
from cv_evaluator.config import get_evaluator_settings, get_settings
from cv_evaluator.errors import JobNotFoundError, QueueFullError, StoreWriteError
from cv_evaluator.lifecycle import JobLifecycle
from cv_evaluator.logging_config import setup_logging
from cv_evaluator.metrics import get_metrics_text
from cv_evaluator.persistence.repository import JobStore
from cv_evaluator.pipeline.factory import create_evaluation_pipeline

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# App lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build every shared component on startup, drain and close on shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level, json_logs=settings.log_json)
    evaluator_settings = get_evaluator_settings()

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)

    store = JobStore(settings.database_url)
    pipeline, retriever = create_evaluation_pipeline(settings)
    lifecycle = JobLifecycle(store, pipeline)
    worker_pool = WorkerPool(
        lifecycle,
        max_workers=settings.max_workers,
        max_queue_size=settings.max_queue_size,
    )

    app.state.components = AppComponents(
        store=store,
        lifecycle=lifecycle,
        worker_pool=worker_pool,
        upload_dir=upload_dir,
        uploads=evaluator_settings.uploads,
    )
    worker_pool.start()
    logger.info(
        "api_started",
        model=evaluator_settings.llm.model,
        max_workers=settings.max_workers,
        max_queue_size=settings.max_queue_size,
    )

    try:
        yield
    finally:
        await worker_pool.shutdown(timeout=settings.shutdown_timeout)
        await retriever.close()
        store.close()
        app.state.components = None
        logger.info("api_shutdown")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------

app = FastAPI(
    title="CV & Project Report Evaluator",
    description=(
        "Asynchronous evaluation of a candidate's CV and project report "
        "against reference guidelines."
    ),
    version="0.1.0",
    lifespan=lifespan,
)

# CORS: configurable via EVAL_CORS_ORIGINS env var
cors_origins = os.environ.get("EVAL_CORS_ORIGINS", "").split(",")
cors_origins = [o.strip() for o in cors_origins if o.strip()]
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Upload handling
# ---------------------------------------------------------------------------


async def _read_upload(upload: UploadFile, field: str, components: AppComponents) -> tuple[str, bytes]:
    """Validate one uploaded document. Returns (basename, content)."""
    basename = Path(upload.filename or "").name
    if not basename:
        raise HTTPException(status_code=422, detail=f"'{field}' file is required.")

    extension = Path(basename).suffix.lower()
    if extension not in components.uploads.allowed_extensions:
        allowed = ", ".join(components.uploads.allowed_extensions)
        raise HTTPException(
            status_code=422,
            detail=f"'{field}' has unsupported file type '{extension}' (allowed: {allowed}).",
        )

    # Never buffer more than one byte past the limit
    content = await upload.read(components.uploads.max_bytes + 1)
    if len(content) > components.uploads.max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"'{field}' exceeds the {components.uploads.max_bytes} byte limit.",
        )
    return basename, content


async def _save_upload(upload_dir: Path, basename: str, content: bytes) -> Path:
    path = upload_dir / f"{uuid.uuid4()}-{basename}"
    await asyncio.to_thread(path.write_bytes, content)
    return path


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.post(
    "/api/v1/evaluate",
    response_model=JobCreatedResponse,
    status_code=202,
    responses={
        413: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
async def submit_evaluation(
    cv: UploadFile = File(...),
    project_report: UploadFile = File(...),
    components: AppComponents = Depends(get_components),
    pool: WorkerPool = Depends(get_worker_pool),
):
    """Upload a CV and a project report for evaluation.

    The evaluation runs asynchronously; poll GET /api/v1/result/{id}.
    """
    cv_name, cv_content = await _read_upload(cv, "cv", components)
    report_name, report_content = await _read_upload(project_report, "project_report", components)

    cv_path = await _save_upload(components.upload_dir, cv_name, cv_content)
    report_path = await _save_upload(components.upload_dir, report_name, report_content)

    try:
        job = await pool.submit(str(cv_path), str(report_path))
    except (QueueFullError, StoreWriteError) as exc:
        cv_path.unlink(missing_ok=True)
        report_path.unlink(missing_ok=True)
        if isinstance(exc, QueueFullError):
            raise HTTPException(
                status_code=503,
                detail="Evaluation queue is full, try again later.",
                headers={"Retry-After": "30"},
            ) from exc
        logger.error("submit_persist_failed", error=str(exc))
        raise HTTPException(status_code=500, detail="Failed to create evaluation job.") from exc

    return JobCreatedResponse(id=job.id, status=job.status.value)


@app.get(
    "/api/v1/result/{job_id}",
    response_model=JobStatusResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_result(
    job_id: str,
    lifecycle: JobLifecycle = Depends(get_lifecycle),
):
    """Get the status of an evaluation job, with its result once completed."""
    try:
        uuid.UUID(job_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid job id.") from None

    try:
        job = lifecycle.get_status(job_id)
    except JobNotFoundError:
        raise HTTPException(status_code=404, detail="Job not found.") from None

    return JobStatusResponse.from_job(job)


# ---------------------------------------------------------------------------
# Health & Metrics
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", response_model=HealthResponse)
async def health_check(components: AppComponents = Depends(get_components)):
    """Health check endpoint for load balancers and monitoring."""
    pool = components.worker_pool
    db_connected = components.store.ping()
    return HealthResponse(
        status="healthy" if db_connected and pool.accepting else "degraded",
        queue_depth=pool.pending_count,
        active_workers=pool.active_count,
        max_workers=pool.max_workers,
        db_connected=db_connected,
    )


@app.get("/api/v1/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=get_metrics_text(),
        media_type="text/plain; charset=utf-8",
    )
