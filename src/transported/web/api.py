"""FastAPI application factory.

Main entry point for the TransportEd Web API.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from transported import __version__
from transported.config import configure_logging, load_app_config
from transported.db import init_db
from transported.web.routes import (
    admin_router,
    attempts_router,
    auth_router,
    comments_router,
    dashboard_router,
    events_router,
    functions_router,
    health_router,
    modules_router,
    progress_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    configure_logging()
    init_db()
    config = load_app_config()
    logger.info(
        "api_startup",
        db_path=config.database.path,
        categories=config.catalog.categories,
    )
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="TransportEd API",
        description="Learning modules, quizzes and progress tracking",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware for browser clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(functions_router)
    app.include_router(auth_router)
    app.include_router(modules_router)
    app.include_router(progress_router)
    app.include_router(attempts_router)
    app.include_router(dashboard_router)
    app.include_router(comments_router)
    app.include_router(admin_router)
    app.include_router(events_router)

    return app


# Default app instance for uvicorn
app = create_app()
