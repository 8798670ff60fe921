"""SQLite database connection and schema management.

Provides connection management and schema initialization for TransportEd.
Access rules that a hosted backend would express as row-level policies live
in the web layer; the schema only carries integrity constraints.
"""

from __future__ import annotations

import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

import structlog

from transported.config import load_app_config

logger = structlog.get_logger(__name__)

# Current database path (module-level, set by init_db)
_db_path: Path | None = None


def _resolve_db_path() -> Path:
    if _db_path is not None:
        return _db_path
    return Path(load_app_config().database.path)


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to the configured path.
    """
    global _db_path
    _db_path = Path(db_path) if db_path else Path(load_app_config().database.path)

    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM modules").fetchall()
    """
    db_path = _resolve_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def new_id() -> str:
    """Generate a row identifier."""
    return str(uuid.uuid4())


def utc_now() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        -- Auth users; email is stored lowercased
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            email_confirmed_at TEXT,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS profiles (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            email TEXT,
            role TEXT NOT NULL DEFAULT 'student' CHECK(role IN ('student', 'admin')),
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS modules (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            content TEXT NOT NULL,
            category TEXT NOT NULL DEFAULT 'Heat Transfer',
            image_url TEXT,
            pdf_url TEXT,
            video_link TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS quizzes (
            id TEXT PRIMARY KEY,
            module_id TEXT NOT NULL REFERENCES modules(id) ON DELETE CASCADE,
            position INTEGER NOT NULL DEFAULT 0,
            question TEXT NOT NULL,
            type TEXT NOT NULL CHECK(type IN ('mcq', 'numeric', 'short')),
            options TEXT NOT NULL DEFAULT '[]',
            correct_answer TEXT NOT NULL,
            explanation TEXT,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS quiz_attempts (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            module_id TEXT NOT NULL REFERENCES modules(id) ON DELETE CASCADE,
            score REAL NOT NULL CHECK(score >= 0 AND score <= 100),
            answers TEXT NOT NULL,
            attempt_date TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS progress (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            module_id TEXT NOT NULL REFERENCES modules(id) ON DELETE CASCADE,
            completed INTEGER NOT NULL DEFAULT 0,
            updated_at TEXT NOT NULL,
            UNIQUE(user_id, module_id)
        );

        CREATE TABLE IF NOT EXISTS comments (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            module_id TEXT NOT NULL REFERENCES modules(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS revoked_tokens (
            jti TEXT PRIMARY KEY,
            expires_at TEXT NOT NULL
        );

        -- Indexes
        CREATE INDEX IF NOT EXISTS idx_profiles_role ON profiles(role);
        CREATE INDEX IF NOT EXISTS idx_quizzes_module_id ON quizzes(module_id);
        CREATE INDEX IF NOT EXISTS idx_attempts_user_id ON quiz_attempts(user_id);
        CREATE INDEX IF NOT EXISTS idx_attempts_module_id ON quiz_attempts(module_id);
        CREATE INDEX IF NOT EXISTS idx_progress_user_id ON progress(user_id);
        CREATE INDEX IF NOT EXISTS idx_comments_module_id ON comments(module_id);
        CREATE INDEX IF NOT EXISTS idx_comments_created_at ON comments(created_at DESC);
        """
    )
