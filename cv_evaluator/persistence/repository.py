"""Repository functions for evaluation jobs.

Each function takes a connection and performs a single operation.
``JobStore`` owns one connection for the process and is passed explicitly to
whoever needs it; there is no module-level handle.
"""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime
from pathlib import Path

import structlog

from cv_evaluator.errors import ErrorKind, JobNotFoundError, StoreWriteError
from cv_evaluator.persistence.db import get_connection
from cv_evaluator.schemas.evaluation import EvaluationResult, Job, JobStatus

logger = structlog.get_logger(__name__)


def _sql(conn, query: str) -> str:
    """Adapt ``?`` placeholders to the connection's paramstyle."""
    if isinstance(conn, sqlite3.Connection):
        return query
    return query.replace("?", "%s")


def _row_to_job(row) -> Job:  # noqa: ANN001
    result = row["result"]
    error_kind = row["error_kind"]
    return Job(
        id=row["id"],
        status=JobStatus(row["status"]),
        cv_path=row["cv_path"],
        report_path=row["report_path"],
        result=EvaluationResult.model_validate_json(result) if result else None,
        error_kind=ErrorKind(error_kind) if error_kind else None,
        error_message=row["error_message"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


# ---------------------------------------------------------------------------
# Evaluations
# ---------------------------------------------------------------------------


def insert_job(conn, job: Job) -> str:
    """Create a new evaluation row. Returns the job id."""
    conn.execute(
        _sql(
            conn,
            """INSERT INTO evaluations (id, status, cv_path, report_path, result,
               error_kind, error_message, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        ),
        (
            job.id,
            job.status.value,
            job.cv_path,
            job.report_path,
            job.result.model_dump_json() if job.result else None,
            job.error_kind.value if job.error_kind else None,
            job.error_message,
            job.created_at.isoformat(),
            job.updated_at.isoformat(),
        ),
    )
    conn.commit()
    return job.id


def fetch_job(conn, job_id: str) -> Job | None:
    """Fetch one evaluation row, or None."""
    row = conn.execute(
        _sql(
            conn,
            """SELECT id, status, cv_path, report_path, result, error_kind,
               error_message, created_at, updated_at
               FROM evaluations WHERE id = ?""",
        ),
        (job_id,),
    ).fetchone()
    return _row_to_job(row) if row is not None else None


def update_job(conn, job: Job) -> int:
    """Full-row update keyed by id. Returns the number of rows changed."""
    cursor = conn.execute(
        _sql(
            conn,
            """UPDATE evaluations
               SET status = ?, result = ?, error_kind = ?, error_message = ?, updated_at = ?
               WHERE id = ?""",
        ),
        (
            job.status.value,
            job.result.model_dump_json() if job.result else None,
            job.error_kind.value if job.error_kind else None,
            job.error_message,
            job.updated_at.isoformat(),
            job.id,
        ),
    )
    conn.commit()
    return cursor.rowcount


# ---------------------------------------------------------------------------
# Store handle
# ---------------------------------------------------------------------------


class JobStore:
    """Durable job records addressed by id.

    Wraps a single connection and serializes access to it. No optimistic
    concurrency: the last writer wins.

    Args:
        db_url: SQLite path or PostgreSQL URL.
    """

    def __init__(self, db_url: str | Path | None = None) -> None:
        self._db_url = db_url
        self._conn = get_connection(db_url)
        self._lock = threading.Lock()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def ping(self) -> bool:
        try:
            with self._lock:
                self._conn.execute("SELECT 1").fetchone()
        except Exception:
            logger.warning("store_ping_failed", exc_info=True)
            return False
        return True

    def create(self, job: Job) -> None:
        try:
            with self._lock:
                insert_job(self._conn, job)
        except Exception as exc:
            logger.error("job_create_failed", job_id=job.id, error=str(exc))
            raise StoreWriteError(f"failed to create job {job.id}: {exc}") from exc
        logger.info("job_created", job_id=job.id, status=job.status.value)

    def find_by_id(self, job_id: str) -> Job:
        with self._lock:
            job = fetch_job(self._conn, job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def update(self, job: Job) -> None:
        try:
            with self._lock:
                changed = update_job(self._conn, job)
        except Exception as exc:
            logger.error("job_update_failed", job_id=job.id, error=str(exc))
            raise StoreWriteError(f"failed to update job {job.id}: {exc}") from exc
        if changed == 0:
            raise JobNotFoundError(job.id)
        logger.debug("job_updated", job_id=job.id, status=job.status.value)
