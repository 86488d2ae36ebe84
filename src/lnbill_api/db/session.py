"""Async engine and session factory shared by requests and background workers."""

from __future__ import annotations

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from lnbill_api.core.settings import settings


def _engine_options(database_url: str) -> dict[str, object]:
    options: dict[str, object] = {"echo": settings.database_echo, "future": True}
    if not database_url.startswith("sqlite"):
        options["pool_size"] = settings.database_pool_size
        options["pool_pre_ping"] = True
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))
async_session = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding a scoped session."""

    async with async_session() as session:
        yield session


__all__ = ["async_session", "engine", "get_session"]
