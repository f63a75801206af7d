from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated, Any

from fastapi import Depends
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from vacation_engine.config import get_settings

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def engine_options(database_url: str) -> dict[str, Any]:
    """Connection pool options for ``database_url``.

    SQLite (used by tests and local tooling) runs without a sized pool.
    """
    settings = get_settings()
    options: dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}
    if make_url(database_url).get_backend_name() != "sqlite":
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
    return options


def get_engine() -> AsyncEngine:
    """Return the shared async engine for the vacation database."""
    global _engine
    if _engine is None:
        url = get_settings().database_url
        _engine = create_async_engine(url, **engine_options(url))
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the shared session factory; used by the API and the worker."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def get_session() -> AsyncIterator[AsyncSession]:
    async with get_session_factory()() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def dispose_engine() -> None:
    """Close pooled connections; the next ``get_engine`` call starts fresh."""
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
