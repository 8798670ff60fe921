"""Route handlers for the Web API."""

from transported.web.routes.health import router as health_router
from transported.web.routes.functions import router as functions_router
from transported.web.routes.auth import router as auth_router
from transported.web.routes.modules import router as modules_router
from transported.web.routes.progress import router as progress_router
from transported.web.routes.attempts import router as attempts_router
from transported.web.routes.dashboard import router as dashboard_router
from transported.web.routes.comments import router as comments_router
from transported.web.routes.admin import router as admin_router
from transported.web.routes.events import router as events_router

__all__ = [
    "health_router",
    "functions_router",
    "auth_router",
    "modules_router",
    "progress_router",
    "attempts_router",
    "dashboard_router",
    "comments_router",
    "admin_router",
    "events_router",
]
