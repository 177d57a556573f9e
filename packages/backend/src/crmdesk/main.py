"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. The Database (connection pool) is built here and parked on
app.state, so every request borrows a session from the pool owned by
*this* app; the lifespan creates tables on startup and disposes the
pool on shutdown.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crmdesk import __version__
from crmdesk.api import api_router
from crmdesk.config import Settings, get_settings
from crmdesk.db.engine import Database
from crmdesk.errors import register_error_handlers
from crmdesk.middleware.request_id import RequestIdMiddleware
from crmdesk.middleware.security import SecurityHeadersMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    settings: Settings = app.state.settings
    db: Database = app.state.db
    logger.info(
        "crmdesk.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    if settings.create_tables:
        await db.create_all()
        logger.info("crmdesk.tables_ready")

    yield

    logger.info("crmdesk.shutdown")
    await db.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="crmdesk",
        description="Contacts, addresses, tasks and a simulated email log, scoped per user",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = Database(settings)

    register_error_handlers(app)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → RequestId → Security → handler
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "crmdesk.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
    )
