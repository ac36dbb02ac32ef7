"""FastAPI dependency injection for the evaluator API.

Shared components are built once in the app lifespan and stored on
``app.state``; route handlers receive them via FastAPI's Depends().
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from fastapi import HTTPException, Request

from cv_evaluator.api.queue import WorkerPool
from cv_evaluator.config import UploadsConfig
from cv_evaluator.lifecycle import JobLifecycle
from cv_evaluator.persistence.repository import JobStore


@dataclass
class AppComponents:
    """Everything the route handlers need, owned by the lifespan."""

    store: JobStore
    lifecycle: JobLifecycle
    worker_pool: WorkerPool
    upload_dir: Path
    uploads: UploadsConfig


def get_components(request: Request) -> AppComponents:
    components = getattr(request.app.state, "components", None)
    if components is None:
        raise HTTPException(status_code=500, detail="Application not initialized")
    return components


def get_worker_pool(request: Request) -> WorkerPool:
    """Get the shared worker pool instance."""
    return get_components(request).worker_pool


def get_lifecycle(request: Request) -> JobLifecycle:
    """Get the shared job lifecycle manager."""
    return get_components(request).lifecycle
