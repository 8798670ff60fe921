"""Progress endpoints."""

from fastapi import APIRouter, Depends

from transported.db import progress_repository
from transported.web.deps import CurrentUser, get_current_user
from transported.web.schemas import ProgressListResponse, ProgressResponse

router = APIRouter(prefix="/api/progress", tags=["progress"])


@router.get("", response_model=ProgressListResponse)
async def list_progress(current: CurrentUser = Depends(get_current_user)) -> ProgressListResponse:
    """List the caller's progress rows."""
    rows = progress_repository.list_progress(user_id=current.id)
    return ProgressListResponse(
        progress=[ProgressResponse.model_validate(r) for r in rows],
        count=len(rows),
    )
