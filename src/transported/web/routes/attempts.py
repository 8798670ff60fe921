"""Quiz attempt history endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from transported.core.analytics import load_quiz_results
from transported.db import attempts_repository
from transported.web.deps import CurrentUser, get_current_user
from transported.web.schemas import AttemptListResponse, AttemptResponse, QuizResultsResponse

router = APIRouter(prefix="/api/attempts", tags=["attempts"])


@router.get("", response_model=AttemptListResponse)
async def list_attempts(
    all_users: bool = Query(default=False, alias="all"),
    module_id: str | None = Query(default=None),
    current: CurrentUser = Depends(get_current_user),
) -> AttemptListResponse:
    """List attempts newest first.

    Students only ever see their own attempts; admins may pass all=true.
    """
    if all_users and not current.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )

    attempts = attempts_repository.list_attempts(
        user_id=None if all_users else current.id,
        module_id=module_id,
    )
    return AttemptListResponse(
        attempts=[AttemptResponse.model_validate(a) for a in attempts],
        count=len(attempts),
    )


@router.get("/summary", response_model=QuizResultsResponse)
async def attempts_summary(current: CurrentUser = Depends(get_current_user)) -> QuizResultsResponse:
    """Average, best score and a chart of the caller's latest attempts."""
    summary = load_quiz_results(current.id)
    return QuizResultsResponse(**summary.to_dict())
