"""Repository functions for quiz attempts.

Each attempt references the module whose question set was answered and
stores the per-question answer set as JSON.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field
from typing import Any

import structlog

from transported.db.database import get_db, new_id, utc_now

logger = structlog.get_logger(__name__)


@dataclass
class AttemptRecord:
    """Quiz attempt record from database."""

    id: str
    user_id: str
    module_id: str
    score: float
    answers: list[dict[str, Any]] = field(default_factory=list)
    attempt_date: str = ""


def insert_attempt(
    user_id: str,
    module_id: str,
    score: float,
    answers: list[dict[str, Any]],
) -> AttemptRecord:
    """Insert a scored attempt.

    Raises:
        sqlite3.IntegrityError: If the user or module does not exist
    """
    record = AttemptRecord(
        id=new_id(),
        user_id=user_id,
        module_id=module_id,
        score=float(score),
        answers=answers,
        attempt_date=utc_now(),
    )

    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO quiz_attempts (id, user_id, module_id, score, answers, attempt_date)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.user_id,
                record.module_id,
                record.score,
                json.dumps(record.answers),
                record.attempt_date,
            ),
        )

    logger.debug("attempts.inserted", attempt_id=record.id, module_id=module_id, score=score)
    return record


def list_attempts(
    user_id: str | None = None,
    module_id: str | None = None,
    limit: int | None = None,
) -> list[AttemptRecord]:
    """List attempts newest first.

    Args:
        user_id: Optional user filter
        module_id: Optional module filter
        limit: Optional maximum number of rows
    """
    clauses = []
    params: list[Any] = []
    if user_id:
        clauses.append("user_id = ?")
        params.append(user_id)
    if module_id:
        clauses.append("module_id = ?")
        params.append(module_id)

    query = "SELECT * FROM quiz_attempts"
    if clauses:
        query += " WHERE " + " AND ".join(clauses)
    query += " ORDER BY attempt_date DESC, rowid DESC"
    if limit is not None:
        query += " LIMIT ?"
        params.append(limit)

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [_row_to_attempt(row) for row in rows]


def _row_to_attempt(row: sqlite3.Row) -> AttemptRecord:
    try:
        answers = json.loads(row["answers"])
    except json.JSONDecodeError:
        answers = []

    return AttemptRecord(
        id=row["id"],
        user_id=row["user_id"],
        module_id=row["module_id"],
        score=float(row["score"]),
        answers=answers if isinstance(answers, list) else [],
        attempt_date=row["attempt_date"],
    )
