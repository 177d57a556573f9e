"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

The pool lives on an explicitly constructed Database object that the app
factory stores on app.state. Nothing opens a connection at import time, and
tests can build as many isolated databases as they like.
"""

from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from crmdesk.config import Settings
from crmdesk.db.models import Base


def _engine_for(settings: Settings) -> AsyncEngine:
    if settings.database_url.startswith("sqlite"):
        # One shared connection so an in-memory database survives across sessions.
        return create_async_engine(
            settings.database_url,
            echo=settings.debug,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
    )


class Database:
    """Owns the connection pool and hands out one session per unit of work."""

    def __init__(self, settings: Settings):
        self.engine = _engine_for(settings)
        # Each request gets its own session.
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        """Create any missing tables from the ORM metadata."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        async with self.engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.scalar() == 1

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency — yields a session per request, auto-closes.

    The session is released on success, on error and on early return;
    uncommitted work is rolled back by the context manager.
    """
    db: Database = request.app.state.db
    async with db.session_factory() as session:
        yield session
