"""Repository functions for per-user module progress."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import structlog

from transported.db.database import get_db, new_id, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class ProgressRecord:
    """Progress record from database."""

    id: str
    user_id: str
    module_id: str
    completed: bool
    updated_at: str


def upsert_progress(user_id: str, module_id: str, completed: bool = True) -> ProgressRecord:
    """Insert or update the (user, module) progress row.

    Raises:
        sqlite3.IntegrityError: If the user or module does not exist
    """
    now = utc_now()

    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO progress (id, user_id, module_id, completed, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(user_id, module_id) DO UPDATE SET
                completed = excluded.completed,
                updated_at = excluded.updated_at
            """,
            (new_id(), user_id, module_id, int(completed), now),
        )
        row = conn.execute(
            "SELECT * FROM progress WHERE user_id = ? AND module_id = ?",
            (user_id, module_id),
        ).fetchone()

    logger.debug("progress.upserted", user_id=user_id, module_id=module_id, completed=completed)
    return _row_to_progress(row)


def get_progress(user_id: str, module_id: str) -> ProgressRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM progress WHERE user_id = ? AND module_id = ?",
            (user_id, module_id),
        ).fetchone()
    return _row_to_progress(row) if row else None


def list_progress(user_id: str | None = None) -> list[ProgressRecord]:
    """List progress rows, optionally for a single user."""
    query = "SELECT * FROM progress"
    params: tuple[str, ...] = ()
    if user_id:
        query += " WHERE user_id = ?"
        params = (user_id,)
    query += " ORDER BY updated_at ASC, rowid ASC"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [_row_to_progress(row) for row in rows]


def _row_to_progress(row: sqlite3.Row) -> ProgressRecord:
    return ProgressRecord(
        id=row["id"],
        user_id=row["user_id"],
        module_id=row["module_id"],
        completed=bool(row["completed"]),
        updated_at=row["updated_at"],
    )
