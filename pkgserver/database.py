"""Database schema and connection management for SQLite."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from pkgserver.config import DATABASE_PATH


def init_database() -> None:
    """
    Initialize database and create tables if they don't exist.
    """
    db_path = Path(DATABASE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS packages (
                package_id TEXT PRIMARY KEY,
                file_name TEXT,
                content_type TEXT,
                checksum TEXT NOT NULL,
                size INTEGER NOT NULL,
                user_id TEXT NOT NULL,
                version_id TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE UNIQUE INDEX IF NOT EXISTS idx_packages_user_version ON packages(user_id, version_id)
        """)

        conn.commit()


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.
    """
    conn = sqlite3.connect(DATABASE_PATH, timeout=30)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def is_unique_violation(error: sqlite3.IntegrityError) -> bool:
    """
    Tell whether an IntegrityError comes from a UNIQUE or PRIMARY KEY constraint.
    """
    message = str(error)
    return "UNIQUE constraint failed" in message or "PRIMARY KEY" in message
