"""Repository functions for modules and quiz questions.

Provides CRUD operations for the modules and quizzes tables.
"""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass, field
from typing import Any

import structlog

from transported.db.database import get_db, new_id, utc_now

logger = structlog.get_logger(__name__)

QUESTION_TYPES = ("mcq", "numeric", "short")


@dataclass
class ModuleRecord:
    """Module record from database."""

    id: str
    title: str
    content: str
    category: str
    image_url: str | None
    pdf_url: str | None
    video_link: str | None
    created_at: str
    updated_at: str

    @property
    def resources(self) -> list[str]:
        """Kinds of media attached to the module."""
        kinds = []
        if self.image_url:
            kinds.append("image")
        if self.pdf_url:
            kinds.append("pdf")
        if self.video_link:
            kinds.append("video")
        return kinds


@dataclass
class QuestionRecord:
    """Quiz question record from database."""

    id: str
    module_id: str
    position: int
    question: str
    type: str
    options: list[str] = field(default_factory=list)
    correct_answer: str = ""
    explanation: str | None = None
    created_at: str = ""


def insert_module(
    title: str,
    content: str,
    category: str,
    image_url: str | None = None,
    pdf_url: str | None = None,
    video_link: str | None = None,
) -> ModuleRecord:
    """Insert a new module and return it."""
    module_id = new_id()
    now = utc_now()

    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO modules (
                id, title, content, category,
                image_url, pdf_url, video_link,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (module_id, title, content, category, image_url, pdf_url, video_link, now, now),
        )

    logger.debug("modules.inserted", module_id=module_id)

    return ModuleRecord(
        id=module_id,
        title=title,
        content=content,
        category=category,
        image_url=image_url,
        pdf_url=pdf_url,
        video_link=video_link,
        created_at=now,
        updated_at=now,
    )


def update_module(
    module_id: str,
    title: str,
    content: str,
    category: str,
    image_url: str | None = None,
    pdf_url: str | None = None,
    video_link: str | None = None,
) -> ModuleRecord | None:
    """Update all editable fields of a module.

    Returns:
        Updated ModuleRecord, or None if the module does not exist
    """
    with get_db() as conn:
        cursor = conn.execute(
            """
            UPDATE modules SET
                title = ?, content = ?, category = ?,
                image_url = ?, pdf_url = ?, video_link = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (title, content, category, image_url, pdf_url, video_link, utc_now(), module_id),
        )
        if cursor.rowcount == 0:
            return None

    logger.debug("modules.updated", module_id=module_id)
    return get_module(module_id)


def delete_module(module_id: str) -> bool:
    """Delete a module; questions, attempts, progress and comments cascade.

    Returns:
        True if deleted, False if not found
    """
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM modules WHERE id = ?", (module_id,))
        deleted = cursor.rowcount > 0

    if deleted:
        logger.info("modules.deleted", module_id=module_id)

    return deleted


def get_module(module_id: str) -> ModuleRecord | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM modules WHERE id = ?", (module_id,)).fetchone()
    return _row_to_module(row) if row else None


def list_modules(category: str | None = None) -> list[ModuleRecord]:
    """List modules in creation order.

    Args:
        category: Optional category filter
    """
    query = "SELECT * FROM modules"
    params: tuple[str, ...] = ()
    if category:
        query += " WHERE category = ?"
        params = (category,)
    query += " ORDER BY created_at ASC, rowid ASC"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [_row_to_module(row) for row in rows]


def list_questions(module_id: str) -> list[QuestionRecord]:
    """List a module's questions in authoring order."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM quizzes WHERE module_id = ?
            ORDER BY position ASC, created_at ASC, rowid ASC
            """,
            (module_id,),
        ).fetchall()

    return [_row_to_question(row) for row in rows]


def count_questions(module_id: str) -> int:
    with get_db() as conn:
        row = conn.execute(
            "SELECT COUNT(*) AS n FROM quizzes WHERE module_id = ?", (module_id,)
        ).fetchone()
    return int(row["n"])


def replace_questions(module_id: str, questions: list[dict[str, Any]]) -> list[QuestionRecord]:
    """Replace a module's question set in a single transaction.

    Args:
        module_id: Module identifier
        questions: Dicts with question, type, options, correct_answer, explanation

    Returns:
        The inserted QuestionRecords in order
    """
    now = utc_now()
    records = [
        QuestionRecord(
            id=new_id(),
            module_id=module_id,
            position=position,
            question=q["question"],
            type=q["type"],
            options=list(q.get("options") or []),
            correct_answer=q["correct_answer"],
            explanation=q.get("explanation") or None,
            created_at=now,
        )
        for position, q in enumerate(questions)
    ]

    with get_db() as conn:
        conn.execute("DELETE FROM quizzes WHERE module_id = ?", (module_id,))
        conn.executemany(
            """
            INSERT INTO quizzes (
                id, module_id, position, question, type,
                options, correct_answer, explanation, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    r.id,
                    r.module_id,
                    r.position,
                    r.question,
                    r.type,
                    json.dumps(r.options),
                    r.correct_answer,
                    r.explanation,
                    r.created_at,
                )
                for r in records
            ],
        )

    logger.debug("quizzes.replaced", module_id=module_id, count=len(records))
    return records


def _parse_options(raw: str | None) -> list[str]:
    if not raw:
        return []
    try:
        options = json.loads(raw)
    except json.JSONDecodeError:
        return []
    if not isinstance(options, list):
        return []
    return [str(o) for o in options]


def _row_to_module(row: sqlite3.Row) -> ModuleRecord:
    return ModuleRecord(
        id=row["id"],
        title=row["title"],
        content=row["content"],
        category=row["category"],
        image_url=row["image_url"],
        pdf_url=row["pdf_url"],
        video_link=row["video_link"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_question(row: sqlite3.Row) -> QuestionRecord:
    return QuestionRecord(
        id=row["id"],
        module_id=row["module_id"],
        position=row["position"],
        question=row["question"],
        type=row["type"],
        options=_parse_options(row["options"]),
        correct_answer=row["correct_answer"],
        explanation=row["explanation"],
        created_at=row["created_at"],
    )
