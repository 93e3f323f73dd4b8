from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import Settings, get_settings


def engine_options(settings: Settings) -> dict[str, Any]:
    # SQLite (local runs, tests) has no server-side pool to size or ping.
    if settings.database_url.startswith("sqlite"):
        return {"echo": False}
    return {
        "echo": False,
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
    }


_settings = get_settings()
engine: AsyncEngine = create_async_engine(_settings.database_url, **engine_options(_settings))

SessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        yield session
