"""
Zordon Hub - Main Application
=============================

Helpdesk for the Command Center: Rangers file tickets, Engineers resolve
them, Admins assign work and watch SLA compliance.

Modules:
- Tickets: lifecycle, SLA due dates, breach tracking, deadline reminders
- Users: registration, roles, engineer workload
- Comments: per-ticket threads with realtime fan-out over /ws

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities and value objects
- Infrastructure: Database, mail relay, realtime hub
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, WebSocket
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

# Configuration and Core
from zordon_hub.config import settings
from zordon_hub.core import ApplicationException

# Infrastructure
from zordon_hub.infrastructure.database import (
    close_database, create_tables, get_session_context, init_database
)
from zordon_hub.notifications.application import NotificationDispatcher
from zordon_hub.notifications.infrastructure import HTTPMailClient
from zordon_hub.shared.infrastructure.realtime import NullBroadcaster, RoomHub
from zordon_hub.shared.infrastructure.scheduler import JobScheduler
from zordon_hub.sla.infrastructure import SLAConfigManager
from zordon_hub.tickets.application import TicketLifecycleService
from zordon_hub.tickets.infrastructure import SQLAlchemyTicketRepository
from zordon_hub.users.infrastructure import SQLAlchemyUserRepository
from zordon_hub.workload.application import WorkloadLedger

# Module Routers
from zordon_hub.comments.interfaces import router as comments_router
from zordon_hub.tickets.interfaces import router as tickets_router
from zordon_hub.users.interfaces import router as users_router

# Middleware and handlers
from zordon_hub.shared.api.middleware import (
    CorrelationIDMiddleware,
    AccessLogMiddleware,
    application_exception_handler,
    global_exception_handler,
    request_validation_exception_handler,
)

# Logging
from zordon_hub.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _build_jobs(app: FastAPI, scheduler: JobScheduler) -> None:
    """Periodic deadline sweep and workload sync, each in its own session."""

    async def deadline_sweep_job():
        try:
            async with get_session_context() as session:
                users = SQLAlchemyUserRepository(session)
                tickets = SQLAlchemyTicketRepository(session)
                service = TicketLifecycleService(
                    tickets,
                    users,
                    WorkloadLedger(users, tickets),
                    NotificationDispatcher(app.state.mailer),
                    lambda: app.state.sla_config.policy,
                )
                await service.run_deadline_sweep()
        except Exception as e:
            logger.error("Scheduled deadline sweep failed", extra={"error": str(e)})

    async def workload_sync_job():
        try:
            async with get_session_context() as session:
                users = SQLAlchemyUserRepository(session)
                await WorkloadLedger(users, SQLAlchemyTicketRepository(session)).sync()
        except Exception as e:
            logger.error("Scheduled workload sync failed", extra={"error": str(e)})

    scheduler.add_job("deadline_sweep", deadline_sweep_job, settings.deadline_sweep_interval_seconds)
    scheduler.add_job("workload_sync", workload_sync_job, settings.workload_sync_interval_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database and create tables
    3. Load SLA configuration and watch it for changes
    4. Create the mail client and realtime hub
    5. Start background jobs (when their intervals are set)

    SHUTDOWN: reverse order.
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting Zordon Hub", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Initializing database")
    init_database()

    # Tables are created here for development; production uses migrations.
    # Without a database the server still starts in degraded mode.
    try:
        await create_tables()
    except Exception as e:
        logger.warning("Database not available - running in degraded mode", extra={"error": str(e)})

    logger.info("Loading SLA configuration")
    sla_config = SLAConfigManager()
    sla_config.load(settings.sla_config_path)
    sla_config.start_watching()
    app.state.sla_config = sla_config

    mailer = HTTPMailClient()
    app.state.mailer = mailer
    app.state.broadcaster = RoomHub() if settings.realtime_enabled else NullBroadcaster()

    scheduler = JobScheduler()
    _build_jobs(app, scheduler)
    scheduler.start()
    app.state.scheduler = scheduler

    logger.info("Zordon Hub started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down Zordon Hub")
    scheduler.stop()
    sla_config.stop_watching()
    await mailer.close()
    await close_database()
    logger.info("Zordon Hub shutdown complete")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Zordon Hub API",
        description="""
    ## Command Center Helpdesk

    Ticketing with role-gated lifecycle, SLA tracking, engineer workload
    balancing and realtime ticket discussions.

    **Identity**: every call except registration carries the caller's user id
    in the `X-User-Id` header, set by the authenticating gateway.

    **SLA resolution hours**: CRITICAL 4, HIGH 8, MEDIUM 24, LOW 72.

    **Realtime**: connect to `/ws` and send
    `{"action": "join_room", "room": "ticket_<id>"}` to receive
    `new_comment`, `comment_updated` and `comment_deleted` events.
    """,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # === CORS Middleware ===
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # === Custom Middleware ===
    # Last added runs first: correlation id is set before the access log reads it
    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_exception_handler(ApplicationException, application_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # === Module Routers ===
    app.include_router(users_router, prefix=settings.api_prefix)
    app.include_router(tickets_router, prefix=settings.api_prefix)
    app.include_router(comments_router, prefix=settings.api_prefix)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Health check for load balancers and orchestrators."""
        checks = {
            "database": "connected",
            "sla_config": "loaded" if getattr(request.app.state, "sla_config", None) else "default",
            "scheduler": "running" if getattr(request.app.state, "scheduler", None)
            and request.app.state.scheduler.is_running else "stopped",
            "realtime": "enabled" if isinstance(getattr(request.app.state, "broadcaster", None), RoomHub)
            else "disabled",
        }

        try:
            async with get_session_context() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            checks["database"] = f"error: {type(e).__name__}"

        return {
            "status": "healthy" if checks["database"] == "connected" else "degraded",
            "version": settings.app_version,
            "environment": settings.environment,
            "checks": checks
        }

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": "Zordon Hub",
            "version": settings.app_version,
            "docs": "/docs",
            "health": "/health",
            "api": settings.api_prefix,
            "realtime": "/ws",
        }

    @app.websocket("/ws")
    async def realtime(websocket: WebSocket):
        hub = getattr(websocket.app.state, "broadcaster", None)
        if not isinstance(hub, RoomHub):
            await websocket.close(code=1013)
            return
        await hub.serve(websocket)

    return app


app = create_app()


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "zordon_hub.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower()
    )
