"""Module discussion endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from transported.core.catalog import ModuleNotFoundError, get_module_or_raise
from transported.core.events import publish_change
from transported.db import comments_repository
from transported.db.comments_repository import CommentRecord
from transported.web.deps import CurrentUser, get_current_user
from transported.web.schemas import CommentCreate, CommentListResponse, CommentResponse

router = APIRouter(prefix="/api/modules", tags=["comments"])

ANONYMOUS = "Anonymous"


def comment_response(comment: CommentRecord) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        user_id=comment.user_id,
        module_id=comment.module_id,
        content=comment.content,
        created_at=comment.created_at,
        user_name=comment.user_name or ANONYMOUS,
        user_email=comment.user_email,
        module_title=comment.module_title,
    )


def _check_module(module_id: str) -> None:
    try:
        get_module_or_raise(module_id)
    except ModuleNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("/{module_id}/comments", response_model=CommentListResponse)
async def list_comments(
    module_id: str,
    current: CurrentUser = Depends(get_current_user),
) -> CommentListResponse:
    """A module's discussion, oldest first."""
    _check_module(module_id)
    comments = comments_repository.list_module_comments(module_id)
    return CommentListResponse(
        comments=[comment_response(c) for c in comments],
        count=len(comments),
    )


@router.post(
    "/{module_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_comment(
    module_id: str,
    request: CommentCreate,
    current: CurrentUser = Depends(get_current_user),
) -> CommentResponse:
    """Post a comment as the caller."""
    content = request.content.strip()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Comment cannot be empty",
        )
    _check_module(module_id)

    comment = comments_repository.insert_comment(current.id, module_id, content)
    await publish_change("comments", "insert", comment.id, current.id)

    comment.user_name = current.profile.name
    comment.user_email = current.profile.email
    return comment_response(comment)
