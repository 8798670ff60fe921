"""Module catalog management.

Responsibilities:
- Validate module drafts (title, content, category, media links)
- Filter question drafts down to the valid ones
- Create/update a module and replace its question set
- Delete a module with everything that references it
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from transported.config import load_app_config
from transported.db import modules_repository
from transported.db.modules_repository import QUESTION_TYPES, ModuleRecord, QuestionRecord
from transported.utils.validators import (
    UnknownCategoryError,
    clean_optional,
    resolve_category,
    validate_url,
)

logger = structlog.get_logger(__name__)

# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class QuestionDraft:
    """A question as submitted by the module editor."""

    question: str
    type: str = "mcq"
    options: list[str] = field(default_factory=list)
    correct_answer: str = ""
    explanation: str | None = None


@dataclass
class ModuleDraft:
    """A module as submitted by the module editor."""

    title: str
    content: str
    category: str | None = None
    image_url: str | None = None
    pdf_url: str | None = None
    video_link: str | None = None


@dataclass
class PreparedQuestions:
    """Valid questions ready to store, plus how many drafts were dropped."""

    questions: list[dict[str, Any]]
    dropped: int = 0


@dataclass
class SaveResult:
    """Result of saving a module."""

    module: ModuleRecord
    questions: list[QuestionRecord]
    created: bool
    warnings: list[str] = field(default_factory=list)


class CatalogValidationError(Exception):
    """Module draft failed validation."""

    pass


class ModuleNotFoundError(Exception):
    """No module with the given ID."""

    def __init__(self, module_id: str):
        self.module_id = module_id
        super().__init__(f"Module '{module_id}' not found")


# =============================================================================
# VALIDATION
# =============================================================================


def _validate_draft(draft: ModuleDraft) -> dict[str, Any]:
    """Validate a draft and return normalized column values."""
    title = draft.title.strip()
    content = draft.content.strip()
    if not title or not content:
        raise CatalogValidationError("Title and content are required")

    catalog = load_app_config().catalog
    try:
        category = resolve_category(draft.category, catalog.categories, catalog.default_category)
    except UnknownCategoryError as e:
        raise CatalogValidationError(str(e)) from e

    media: dict[str, str | None] = {}
    for name in ("image_url", "pdf_url", "video_link"):
        value = clean_optional(getattr(draft, name))
        if value is not None and not validate_url(value):
            raise CatalogValidationError(f"{name} must be an http(s) URL")
        media[name] = value

    return {"title": title, "content": content, "category": category, **media}


def _is_valid_question(draft: QuestionDraft, options: list[str]) -> bool:
    if not draft.question.strip() or not draft.correct_answer.strip():
        return False
    if draft.type not in QUESTION_TYPES:
        return False
    if draft.type == "mcq":
        return bool(options) and draft.correct_answer in options
    return True


def prepare_questions(drafts: list[QuestionDraft]) -> PreparedQuestions:
    """Keep only complete questions, stripping blank options.

    A question is kept when it has question text and a correct answer; an
    mcq question additionally needs at least one option and a correct
    answer that is one of its options.
    """
    prepared = []
    for draft in drafts:
        options = [o for o in draft.options if o.strip()]
        if not _is_valid_question(draft, options):
            continue
        prepared.append(
            {
                "question": draft.question.strip(),
                "type": draft.type,
                "options": options if draft.type == "mcq" else [],
                "correct_answer": draft.correct_answer,
                "explanation": clean_optional(draft.explanation),
            }
        )

    return PreparedQuestions(questions=prepared, dropped=len(drafts) - len(prepared))


# =============================================================================
# OPERATIONS
# =============================================================================


def save_module(
    draft: ModuleDraft,
    questions: list[QuestionDraft] | None = None,
    module_id: str | None = None,
) -> SaveResult:
    """Create or update a module and, if questions are given, replace its quiz.

    An empty or missing question list leaves an existing quiz untouched.

    Args:
        draft: Module fields
        questions: Question drafts from the editor
        module_id: Existing module to update; None creates a new module

    Returns:
        SaveResult with the stored module and its current questions

    Raises:
        CatalogValidationError: If the draft is invalid
        ModuleNotFoundError: If module_id does not exist
    """
    values = _validate_draft(draft)
    warnings: list[str] = []

    if module_id is None:
        module = modules_repository.insert_module(**values)
        created = True
    else:
        updated = modules_repository.update_module(module_id, **values)
        if updated is None:
            raise ModuleNotFoundError(module_id)
        module = updated
        created = False

    if questions:
        prepared = prepare_questions(questions)
        if prepared.dropped:
            warnings.append(f"{prepared.dropped} incomplete question(s) were skipped")
        if prepared.questions:
            stored = modules_repository.replace_questions(module.id, prepared.questions)
        else:
            stored = modules_repository.list_questions(module.id)
    else:
        stored = modules_repository.list_questions(module.id)

    logger.info(
        "catalog.module_saved",
        module_id=module.id,
        created=created,
        questions=len(stored),
        warnings=len(warnings),
    )
    return SaveResult(module=module, questions=stored, created=created, warnings=warnings)


def get_module_or_raise(module_id: str) -> ModuleRecord:
    module = modules_repository.get_module(module_id)
    if module is None:
        raise ModuleNotFoundError(module_id)
    return module


def delete_module(module_id: str) -> None:
    """Delete a module.

    Raises:
        ModuleNotFoundError: If module_id does not exist
    """
    if not modules_repository.delete_module(module_id):
        raise ModuleNotFoundError(module_id)


def list_modules(category: str | None = None) -> list[ModuleRecord]:
    """List modules, matching the category filter like module input does.

    Raises:
        CatalogValidationError: If the category is not configured
    """
    if category is None or not category.strip():
        return modules_repository.list_modules()

    catalog = load_app_config().catalog
    try:
        resolved = resolve_category(category, catalog.categories, catalog.default_category)
    except UnknownCategoryError as e:
        raise CatalogValidationError(str(e)) from e
    return modules_repository.list_modules(category=resolved)
