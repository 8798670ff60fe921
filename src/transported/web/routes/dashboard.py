"""Student dashboard endpoint."""

from fastapi import APIRouter, Depends

from transported.core.analytics import load_student_dashboard
from transported.web.deps import CurrentUser, get_current_user
from transported.web.schemas import DashboardResponse

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
async def get_dashboard(current: CurrentUser = Depends(get_current_user)) -> DashboardResponse:
    """Progress, recent scores and the next module for the caller."""
    dashboard = load_student_dashboard(current.id)
    return DashboardResponse(**dashboard.to_dict())
