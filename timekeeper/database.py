"""Async SQLAlchemy engine, session factory and the request-scoped session.

PostgreSQL (asyncpg) is the production store. A ``sqlite+aiosqlite`` URL is
accepted for local runs; SQLite gets no connection-pool sizing.
"""

import logging
from typing import Any, AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from timekeeper.config import settings

logger = logging.getLogger(__name__)


def engine_options(url: str) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine`` by backend."""
    options: dict[str, Any] = {"echo": settings.DB_ECHO}
    if make_url(url).get_backend_name() == "sqlite":
        return options
    options.update(
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_pre_ping=True,
    )
    return options


engine = create_async_engine(settings.DATABASE_URL, **engine_options(settings.DATABASE_URL))

# Attendance rows stay readable after commit (router responses serialize them)
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for every Timekeeper table."""


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request, committed on success.

    Any exception rolls the whole request back, so a refused punch or
    report leaves no partial writes behind.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            logger.debug("Rolling back request session", exc_info=True)
            await session.rollback()
            raise
