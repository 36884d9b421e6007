"""Timekeeper — FastAPI Application Factory."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from timekeeper import __version__
from timekeeper.attendance.router import router as attendance_router
from timekeeper.common.exceptions import register_exception_handlers
from timekeeper.common.rate_limit import limiter
from timekeeper.config import settings
from timekeeper.exports.router import router as exports_router
from timekeeper.notifications.router import router as notifications_router
from timekeeper.organization.router import companies_router, employees_router
from timekeeper.reports.router import router as reports_router
from timekeeper.statistics.router import router as statistics_router


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="Timekeeper",
        description="Employee time-and-attendance: punches, penalties, daily reports, statistics",
        version=__version__,
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": __version__,
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(companies_router, prefix="/api/v1/companies", tags=["companies"])
    app.include_router(employees_router, prefix="/api/v1/employees", tags=["employees"])
    app.include_router(attendance_router, prefix="/api/v1/attendance", tags=["attendance"])
    app.include_router(reports_router, prefix="/api/v1/reports", tags=["reports"])
    app.include_router(statistics_router, prefix="/api/v1/statistics", tags=["statistics"])
    app.include_router(exports_router, prefix="/api/v1/exports", tags=["exports"])
    app.include_router(notifications_router, prefix="/api/v1/notifications", tags=["notifications"])

    return app


app = create_app()
