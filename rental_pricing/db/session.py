"""Async engine and session helpers for the catalog database."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from rental_pricing.core.config import get_settings

_engines: dict[str, AsyncEngine] = {}
_sessionmakers: dict[str, async_sessionmaker[AsyncSession]] = {}


def _resolve_database_url(override: str | None = None) -> str:
    return override or get_settings().database_url


def get_sessionmaker(
    database_url: str | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Return the cached sessionmaker bound to ``database_url``."""
    url = _resolve_database_url(database_url)
    factory = _sessionmakers.get(url)
    if factory is None:
        engine = create_async_engine(url, echo=False, future=True)
        factory = async_sessionmaker(
            engine, expire_on_commit=False, class_=AsyncSession
        )
        _engines[url] = engine
        _sessionmakers[url] = factory
    return factory


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield a session from the configured engine (FastAPI dependency)."""
    async with get_sessionmaker()() as session:
        yield session


@asynccontextmanager
async def open_session(database_url: str | None = None) -> AsyncIterator[AsyncSession]:
    """Open a session for batch jobs and dispose the engine afterwards."""
    try:
        async with get_sessionmaker(database_url)() as session:
            yield session
    finally:
        await dispose_engine(database_url)


async def dispose_engine(database_url: str | None = None) -> None:
    """Dispose the cached engine/sessionmaker for the given database URL."""
    url = _resolve_database_url(database_url)
    engine = _engines.pop(url, None)
    _sessionmakers.pop(url, None)
    if engine is not None:
        await engine.dispose()
