"""Module endpoints: catalog, quiz taking and per-module progress."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from transported.core.catalog import (
    CatalogValidationError,
    ModuleDraft,
    ModuleNotFoundError,
    QuestionDraft,
    delete_module,
    get_module_or_raise,
    list_modules as list_catalog_modules,
    save_module,
)
from transported.core.events import publish_change
from transported.core.quiz_grader import QuizNotAvailableError, grade_quiz
from transported.db import attempts_repository, modules_repository, progress_repository
from transported.web.deps import CurrentUser, get_current_user, require_admin
from transported.web.schemas import (
    AttemptResultResponse,
    AttemptSubmission,
    ModuleDetailResponse,
    ModuleInput,
    ModuleListItem,
    ModuleListResponse,
    ModuleResponse,
    ModuleSaveResponse,
    ProgressResponse,
    ProgressUpdate,
    QuestionResponse,
    QuestionResultResponse,
    QuizQuestion,
    QuizResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/modules", tags=["modules"])


def _module_or_404(module_id: str):
    try:
        return get_module_or_raise(module_id)
    except ModuleNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


def _to_drafts(request: ModuleInput) -> tuple[ModuleDraft, list[QuestionDraft]]:
    draft = ModuleDraft(
        title=request.title,
        content=request.content,
        category=request.category,
        image_url=request.image_url,
        pdf_url=request.pdf_url,
        video_link=request.video_link,
    )
    questions = [
        QuestionDraft(
            question=q.question,
            type=q.type,
            options=list(q.options),
            correct_answer=q.correct_answer,
            explanation=q.explanation,
        )
        for q in request.questions
    ]
    return draft, questions


# =============================================================================
# CATALOG
# =============================================================================


@router.get("", response_model=ModuleListResponse)
async def list_modules(
    category: str | None = Query(default=None),
    current: CurrentUser = Depends(get_current_user),
) -> ModuleListResponse:
    """List modules in creation order, flagged with the caller's completion."""
    try:
        modules = list_catalog_modules(category=category)
    except CatalogValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    completed_ids = {
        p.module_id for p in progress_repository.list_progress(user_id=current.id) if p.completed
    }
    items = [
        ModuleListItem(
            **ModuleResponse.model_validate(m).model_dump(),
            completed=m.id in completed_ids,
        )
        for m in modules
    ]
    return ModuleListResponse(modules=items, count=len(items))


@router.get("/{module_id}", response_model=ModuleDetailResponse)
async def get_module(
    module_id: str,
    current: CurrentUser = Depends(get_current_user),
) -> ModuleDetailResponse:
    """Get a module with its question count and the caller's progress."""
    module = _module_or_404(module_id)
    progress = progress_repository.get_progress(current.id, module_id)
    return ModuleDetailResponse(
        **ModuleResponse.model_validate(module).model_dump(),
        question_count=modules_repository.count_questions(module_id),
        completed=bool(progress and progress.completed),
    )


@router.post("", response_model=ModuleSaveResponse, status_code=status.HTTP_201_CREATED)
async def create_module(
    request: ModuleInput,
    current: CurrentUser = Depends(require_admin),
) -> ModuleSaveResponse:
    """Create a module, optionally with quiz questions."""
    draft, questions = _to_drafts(request)
    try:
        result = save_module(draft, questions)
    except CatalogValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    await publish_change("modules", "insert", result.module.id, current.id)
    if result.questions:
        await publish_change("quizzes", "insert", result.module.id, current.id)

    return ModuleSaveResponse(
        module=ModuleResponse.model_validate(result.module),
        questions=[QuestionResponse.model_validate(q) for q in result.questions],
        warnings=result.warnings,
    )


@router.put("/{module_id}", response_model=ModuleSaveResponse)
async def update_module(
    module_id: str,
    request: ModuleInput,
    current: CurrentUser = Depends(require_admin),
) -> ModuleSaveResponse:
    """Update a module; a non-empty question list replaces its quiz."""
    draft, questions = _to_drafts(request)
    try:
        result = save_module(draft, questions, module_id=module_id)
    except ModuleNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except CatalogValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    await publish_change("modules", "update", module_id, current.id)
    if questions:
        await publish_change("quizzes", "update", module_id, current.id)

    return ModuleSaveResponse(
        module=ModuleResponse.model_validate(result.module),
        questions=[QuestionResponse.model_validate(q) for q in result.questions],
        warnings=result.warnings,
    )


@router.delete("/{module_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_module(
    module_id: str,
    current: CurrentUser = Depends(require_admin),
) -> None:
    """Delete a module and everything attached to it."""
    try:
        delete_module(module_id)
    except ModuleNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    await publish_change("modules", "delete", module_id, current.id)


@router.get("/{module_id}/questions", response_model=list[QuestionResponse])
async def list_module_questions(
    module_id: str,
    current: CurrentUser = Depends(require_admin),
) -> list[QuestionResponse]:
    """Full question set including correct answers, for the module editor."""
    _module_or_404(module_id)
    return [QuestionResponse.model_validate(q) for q in modules_repository.list_questions(module_id)]


# =============================================================================
# QUIZ
# =============================================================================


@router.get("/{module_id}/quiz", response_model=QuizResponse)
async def get_quiz(
    module_id: str,
    current: CurrentUser = Depends(get_current_user),
) -> QuizResponse:
    """Questions to answer, without correct answers or explanations."""
    module = _module_or_404(module_id)
    questions = modules_repository.list_questions(module_id)
    if not questions:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="This module doesn't have any quiz questions yet.",
        )

    return QuizResponse(
        module_id=module.id,
        module_title=module.title,
        questions=[QuizQuestion.model_validate(q) for q in questions],
    )


@router.post(
    "/{module_id}/quiz/attempts",
    response_model=AttemptResultResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_attempt(
    module_id: str,
    request: AttemptSubmission,
    current: CurrentUser = Depends(get_current_user),
) -> AttemptResultResponse:
    """Grade the caller's answers and store the attempt."""
    _module_or_404(module_id)
    questions = modules_repository.list_questions(module_id)

    try:
        grade = grade_quiz(questions, request.answers)
    except QuizNotAvailableError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e

    attempt = attempts_repository.insert_attempt(
        user_id=current.id,
        module_id=module_id,
        score=grade.score,
        answers=[r.to_answer_dict() for r in grade.results],
    )
    logger.info(
        "quiz.attempt_submitted",
        attempt_id=attempt.id,
        module_id=module_id,
        score=grade.score,
    )
    await publish_change("quiz_attempts", "insert", attempt.id, current.id)

    return AttemptResultResponse(
        attempt_id=attempt.id,
        module_id=module_id,
        score=attempt.score,
        correct_count=grade.correct_count,
        total_questions=grade.total_questions,
        band=grade.band,
        feedback=grade.feedback,
        results=[QuestionResultResponse.model_validate(r) for r in grade.results],
        attempt_date=attempt.attempt_date,
    )


# =============================================================================
# PROGRESS
# =============================================================================


@router.put("/{module_id}/progress", response_model=ProgressResponse)
async def set_progress(
    module_id: str,
    request: ProgressUpdate,
    current: CurrentUser = Depends(get_current_user),
) -> ProgressResponse:
    """Mark the module completed (or not) for the caller."""
    _module_or_404(module_id)
    existing = progress_repository.get_progress(current.id, module_id)
    record = progress_repository.upsert_progress(current.id, module_id, request.completed)

    await publish_change(
        "progress", "update" if existing else "insert", record.id, current.id
    )
    return ProgressResponse.model_validate(record)
