"""VacayTracker — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from vacaytracker.common.exceptions import register_exception_handlers
from vacaytracker.common.logging import configure_logging
from vacaytracker.config import settings
from vacaytracker.database import engine
from vacaytracker.notifications.router import router as notifications_router
from vacaytracker.settings.router import public_router as public_settings_router
from vacaytracker.settings.router import router as settings_router
from vacaytracker.users.router import router as users_router
from vacaytracker.vacation.router import admin_router as vacation_admin_router
from vacaytracker.vacation.router import router as vacation_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("VacayTracker starting (%s)", settings.ENVIRONMENT)
    yield
    await engine.dispose()
    logger.info("VacayTracker stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="VacayTracker",
        description="Vacation requests, approvals and balances",
        version="1.0.0",
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(vacation_router, prefix="/api/v1/vacation", tags=["vacation"])
    app.include_router(vacation_admin_router, prefix="/api/v1/admin/vacation", tags=["admin"])
    app.include_router(users_router, prefix="/api/v1/admin/users", tags=["admin"])
    app.include_router(settings_router, prefix="/api/v1/admin/settings", tags=["admin"])
    app.include_router(public_settings_router, prefix="/api/v1/settings", tags=["settings"])
    app.include_router(notifications_router, prefix="/api/v1/notifications", tags=["notifications"])

    return app


app = create_app()
