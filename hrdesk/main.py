"""HR Desk: FastAPI application factory."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from hrdesk.attendance.recorder import DeviceLogRegistry
from hrdesk.attendance.router import router as attendance_router
from hrdesk.common.exceptions import register_exception_handlers
from hrdesk.common.rate_limit import limiter
from hrdesk.config import settings
from hrdesk.core_hr.importer import PendingImportRegistry
from hrdesk.core_hr.router import (
    branches_router,
    departments_router,
    employees_router,
    shifts_router,
)
from hrdesk.dashboard.router import router as dashboard_router
from hrdesk.dashboard.state import AppState
from hrdesk.database import async_session_factory
from hrdesk.feeds.router import alerts_router, announcements_router, notifications_router
from hrdesk.integrity.router import router as integrity_router
from hrdesk.payroll.router import bank_accounts_router
from hrdesk.payroll.router import router as payroll_router
from hrdesk.requests.router import leaves_router, loans_router, missions_router
from hrdesk.tasks.router import router as tasks_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the state poller on startup, stop it on shutdown."""
    poller = None
    if settings.STATE_REFRESH_SECONDS > 0:
        poller = asyncio.create_task(
            app.state.app_state.poll(async_session_factory, settings.STATE_REFRESH_SECONDS)
        )
        logger.info("State poller started (every %ss)", settings.STATE_REFRESH_SECONDS)
    yield
    if poller is not None:
        poller.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await poller


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="HR Desk",
        description="HR and payroll administration: attendance, payroll batches, bank transfers, integrity",
        version="1.0.0",
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Application-scoped state
    app.state.app_state = AppState()
    app.state.import_registry = PendingImportRegistry()
    app.state.device_logs = DeviceLogRegistry()

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
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(employees_router, prefix="/api/v1/employees", tags=["employees"])
    app.include_router(departments_router, prefix="/api/v1/departments", tags=["departments"])
    app.include_router(branches_router, prefix="/api/v1/branches", tags=["branches"])
    app.include_router(shifts_router, prefix="/api/v1/shifts", tags=["shifts"])
    app.include_router(attendance_router, prefix="/api/v1/attendance", tags=["attendance"])
    app.include_router(payroll_router, prefix="/api/v1/payroll", tags=["payroll"])
    app.include_router(bank_accounts_router, prefix="/api/v1/bank-accounts", tags=["bank-accounts"])
    app.include_router(integrity_router, prefix="/api/v1/integrity", tags=["integrity"])
    app.include_router(announcements_router, prefix="/api/v1/announcements", tags=["announcements"])
    app.include_router(alerts_router, prefix="/api/v1/security", tags=["security"])
    app.include_router(notifications_router, prefix="/api/v1/notifications", tags=["notifications"])
    app.include_router(tasks_router, prefix="/api/v1/tasks", tags=["tasks"])
    app.include_router(leaves_router, prefix="/api/v1/leaves", tags=["leaves"])
    app.include_router(missions_router, prefix="/api/v1/missions", tags=["missions"])
    app.include_router(loans_router, prefix="/api/v1/loans", tags=["loans"])
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["dashboard"])

    return app


app = create_app()
