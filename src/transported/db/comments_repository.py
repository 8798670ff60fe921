"""Repository functions for module comments."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

import structlog

from transported.db.database import get_db, new_id, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class CommentRecord:
    """Comment record, joined with author and module details where listed."""

    id: str
    user_id: str
    module_id: str
    content: str
    created_at: str
    user_name: str | None = None
    user_email: str | None = None
    module_title: str | None = None


def insert_comment(user_id: str, module_id: str, content: str) -> CommentRecord:
    """Insert a comment.

    Raises:
        sqlite3.IntegrityError: If the user or module does not exist
    """
    record = CommentRecord(
        id=new_id(),
        user_id=user_id,
        module_id=module_id,
        content=content,
        created_at=utc_now(),
    )

    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO comments (id, user_id, module_id, content, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (record.id, record.user_id, record.module_id, record.content, record.created_at),
        )

    logger.debug("comments.inserted", comment_id=record.id, module_id=module_id)
    return record


def list_module_comments(module_id: str) -> list[CommentRecord]:
    """List a module's discussion, oldest first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT c.*, p.name AS user_name, p.email AS user_email, m.title AS module_title
            FROM comments c
            LEFT JOIN profiles p ON p.user_id = c.user_id
            LEFT JOIN modules m ON m.id = c.module_id
            WHERE c.module_id = ?
            ORDER BY c.created_at ASC, c.rowid ASC
            """,
            (module_id,),
        ).fetchall()

    return [_row_to_comment(row) for row in rows]


def list_all_comments() -> list[CommentRecord]:
    """List every comment, newest first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT c.*, p.name AS user_name, p.email AS user_email, m.title AS module_title
            FROM comments c
            LEFT JOIN profiles p ON p.user_id = c.user_id
            LEFT JOIN modules m ON m.id = c.module_id
            ORDER BY c.created_at DESC, c.rowid DESC
            """
        ).fetchall()

    return [_row_to_comment(row) for row in rows]


def _row_to_comment(row: sqlite3.Row) -> CommentRecord:
    return CommentRecord(
        id=row["id"],
        user_id=row["user_id"],
        module_id=row["module_id"],
        content=row["content"],
        created_at=row["created_at"],
        user_name=row["user_name"],
        user_email=row["user_email"],
        module_title=row["module_title"],
    )
