"""
Database connection and initialization.
"""
from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from .schema import all_schema_sql, session_schema

logger = logging.getLogger(__name__)

SQLITE_PREFIX = "sqlite:///"
BUSY_TIMEOUT_MS = 5000


def parse_database_url(url: str) -> Path:
    """
    Resolve a connection string to a database file path.
    Accepts sqlite:///relative/path, sqlite:////absolute/path or a bare file path.
    In-memory databases are rejected: every operation opens its own connection.
    """
    target = url[len(SQLITE_PREFIX):] if url.startswith(SQLITE_PREFIX) else url
    if "://" in target:
        raise ValueError(f"unsupported database URL: {url}")
    if not target or target == ":memory:":
        raise ValueError("an on-disk database file is required")
    return Path(target)


def get_connection(db_path: str | Path) -> sqlite3.Connection:
    """
    Return a new SQLite connection with foreign keys enforced.
    Use as context manager or ensure close() is called.
    """
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), timeout=BUSY_TIMEOUT_MS / 1000)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str | Path) -> None:
    """Create or ensure all tables exist, session table included."""
    conn = get_connection(db_path)
    try:
        conn.executescript(all_schema_sql())
        conn.executescript(session_schema())
        conn.commit()
    finally:
        conn.close()
    logger.info("Database ready at %s", db_path)
