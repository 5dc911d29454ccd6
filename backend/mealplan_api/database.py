"""Database session management for the FastAPI backend."""
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import Settings, get_settings


def engine_options(settings: Settings) -> dict[str, Any]:
    """Keyword arguments for the async engine.

    The pool is bounded: ``max_overflow=0`` makes surplus requests wait for a
    free connection (up to ``pool_timeout`` seconds) instead of opening more.
    """

    options: dict[str, Any] = {"future": True, "echo": False}
    if settings.database_url.startswith("sqlite+"):
        options["connect_args"] = {"check_same_thread": False}
    # In-memory SQLite uses a StaticPool which takes no sizing arguments.
    if ":memory:" not in settings.database_url:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=0,
            pool_timeout=settings.db_pool_timeout,
        )
    return options


settings = get_settings()
engine = create_async_engine(settings.database_url, **engine_options(settings))
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async SQLAlchemy session per request."""

    async with AsyncSessionLocal() as session:
        yield session
