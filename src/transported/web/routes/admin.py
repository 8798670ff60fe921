"""Admin endpoints: analytics report and comment moderation view."""

from fastapi import APIRouter, Depends

from transported.core.analytics import UNKNOWN_MODULE, load_admin_analytics
from transported.db import comments_repository
from transported.web.deps import CurrentUser, require_admin
from transported.web.routes.comments import comment_response
from transported.web.schemas import AdminAnalyticsResponse, CommentListResponse

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/analytics", response_model=AdminAnalyticsResponse)
async def get_analytics(current: CurrentUser = Depends(require_admin)) -> AdminAnalyticsResponse:
    """Overview, per-student and per-module rollups and the attempt feed."""
    report = load_admin_analytics()
    return AdminAnalyticsResponse(**report.to_dict())


@router.get("/comments", response_model=CommentListResponse)
async def list_all_comments(current: CurrentUser = Depends(require_admin)) -> CommentListResponse:
    """Every comment, newest first, with author and module."""
    comments = []
    for comment in comments_repository.list_all_comments():
        response = comment_response(comment)
        response.module_title = comment.module_title or UNKNOWN_MODULE
        comments.append(response)
    return CommentListResponse(comments=comments, count=len(comments))
