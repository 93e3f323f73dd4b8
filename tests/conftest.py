from __future__ import annotations

import os

# Settings are read once at import time; the app refuses to start without a database URL.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./helpdesk-test.db")
os.environ.setdefault("ENV", "dev")
os.environ.setdefault("OPENAI_API_KEY", "")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool  # noqa: E402

from app.api import deps  # noqa: E402
from app.core.enums import UserRole  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.models import *  # noqa: F401,F403,E402
from app.repositories.user import UserRepository  # noqa: E402
from app.services.ai.providers import MockProvider  # noqa: E402


@pytest.fixture()
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'helpdesk.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
def provider() -> MockProvider:
    return MockProvider(dimensions=128)


@pytest.fixture()
async def app_client(session_factory, provider):
    async def override_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[deps.get_db_session] = override_db
    app.dependency_overrides[deps.get_session_factory] = lambda: session_factory
    app.dependency_overrides[deps.get_provider] = lambda: provider

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture()
async def users(session_factory) -> dict:
    async with session_factory() as session:
        repo = UserRepository(session)
        created = {
            "visitor": await repo.create(email="vera@example.com", name="Vera Visitor", external_auth_id="visitor-1"),
            "other": await repo.create(email="oscar@example.com", name="Oscar Other", external_auth_id="visitor-2"),
            "agent": await repo.create(
                email="agnes@helpdesk.local",
                name="Agnes Agent",
                external_auth_id="agent-1",
                role=UserRole.AGENT,
            ),
        }
        await session.commit()
    return created


def headers_for(user) -> dict[str, str]:
    return {"X-User-Id": user.external_auth_id}


@pytest.fixture()
def visitor_headers(users) -> dict[str, str]:
    return headers_for(users["visitor"])


@pytest.fixture()
def other_headers(users) -> dict[str, str]:
    return headers_for(users["other"])


@pytest.fixture()
def agent_headers(users) -> dict[str, str]:
    return headers_for(users["agent"])
