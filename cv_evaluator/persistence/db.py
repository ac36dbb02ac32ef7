"""Persistence layer for evaluation jobs.

Supports two backends:
- **SQLite** (default): Zero dependencies, used for CLI and development.
- **PostgreSQL** (production): Used when DATABASE_URL starts with "postgresql://".

The connection interface is unified: both backends return a connection
that supports execute(), fetchone(), fetchall(), commit(), close().
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

DB_PATH = Path("data/evaluator.db")

# ---------------------------------------------------------------------------
# Schema (compatible with both SQLite and PostgreSQL)
# ---------------------------------------------------------------------------

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS evaluations (
    id              TEXT PRIMARY KEY,
    status          TEXT NOT NULL DEFAULT 'queued',
    cv_path         TEXT NOT NULL,
    report_path     TEXT NOT NULL,
    result          TEXT,
    error_kind      TEXT,
    error_message   TEXT,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_evaluations_status ON evaluations(status);
"""


# ---------------------------------------------------------------------------
# Connection factory
# ---------------------------------------------------------------------------


def is_postgres_url(db_url: str | Path | None) -> bool:
    path_str = str(db_url) if db_url else ""
    return path_str.startswith("postgresql://") or path_str.startswith("postgres://")


def get_connection(db_path: str | Path | None = None):
    """Get a database connection.

    Routing logic:
    - If db_path starts with "postgresql://", returns a psycopg connection.
    - Otherwise, returns a SQLite connection (default).
    """
    if is_postgres_url(db_path):
        return _get_pg_connection(str(db_path))

    return _get_sqlite_connection(db_path)


def _get_sqlite_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """Get or create SQLite connection. Auto-creates tables on first use.

    The connection may be shared with worker threads; callers serialize
    access (see ``JobStore``).
    """
    path = Path(db_path) if db_path else DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    _ensure_sqlite_tables(conn)
    return conn


def _get_pg_connection(db_url: str):
    """Get a PostgreSQL connection via psycopg.

    Returns a psycopg connection with dict row factory for
    compatibility with the SQLite Row interface.
    """
    import psycopg
    from psycopg.rows import dict_row

    conn = psycopg.connect(db_url, autocommit=True, row_factory=dict_row)
    _ensure_pg_tables(conn)
    logger.info("pg_connection_established", db_url=db_url[:30] + "...")
    return conn


# ---------------------------------------------------------------------------
# Table setup
# ---------------------------------------------------------------------------


def _ensure_sqlite_tables(conn: sqlite3.Connection) -> None:
    """Create tables if they don't exist. Runs migrations for schema changes."""
    conn.executescript(SCHEMA_SQL)
    # Migration: failure classification columns were added after the first release
    columns = {row[1] for row in conn.execute("PRAGMA table_info(evaluations)").fetchall()}
    for column in ("error_kind", "error_message"):
        if column not in columns:
            conn.execute(f"ALTER TABLE evaluations ADD COLUMN {column} TEXT")
    conn.commit()


def _ensure_pg_tables(conn) -> None:
    """Create tables in PostgreSQL if they don't exist."""
    with conn.cursor() as cur:
        cur.execute(SCHEMA_SQL)
    logger.info("pg_tables_ensured")
