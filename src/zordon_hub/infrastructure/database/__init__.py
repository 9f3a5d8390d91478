"""
Database Infrastructure
=======================

One async engine per process, created at startup and disposed at shutdown.
Sessions are unit-of-work scoped: committed when the caller finishes and
rolled back when it raises.

PostgreSQL goes through asyncpg; SQLite URLs skip the pool sizing.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from zordon_hub.config import settings


class Base(DeclarativeBase):
    """Declarative base shared by the users, tickets and comments tables."""


_engine: AsyncEngine | None = None
_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    if _engine is None:
        raise RuntimeError("Database engine not initialized. Call init_database() first.")
    return _engine


def _require_session_maker() -> async_sessionmaker[AsyncSession]:
    if _session_maker is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _session_maker


def _engine_options(url: str) -> tuple[str, dict]:
    options = {"echo": settings.debug, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        return url, options
    # asyncpg takes ssl=, not the libpq sslmode= that hosted providers hand out
    options["pool_size"] = settings.db_pool_size
    options["max_overflow"] = settings.db_max_overflow
    return url.replace("sslmode=", "ssl="), options


def init_database(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Build the engine and session factory.

    Args:
        database_url: Overrides ``settings.database_url`` (tests, scripts)
    """
    global _engine, _session_maker

    url, options = _engine_options(database_url or settings.database_url)
    _engine = create_async_engine(url, **options)
    _session_maker = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return _engine


async def close_database() -> None:
    global _engine, _session_maker

    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_maker = None


@asynccontextmanager
async def get_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Open a unit-of-work session outside a request.

    Scheduled jobs and the health check use this:

        async with get_session_context() as session:
            ...
    """
    async with _require_session_maker()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session for ``Depends()``; all repositories of a request share it."""
    async with get_session_context() as session:
        yield session


async def create_tables() -> None:
    """Create missing tables. Local development only; deployments run migrations."""
    # Importing the model modules registers their tables on Base.metadata
    from zordon_hub.users.infrastructure import models as _users  # noqa: F401
    from zordon_hub.tickets.infrastructure import models as _tickets  # noqa: F401
    from zordon_hub.comments.infrastructure import models as _comments  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
