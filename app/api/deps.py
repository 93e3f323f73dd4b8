from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Depends, Header, WebSocket
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.db.session import SessionLocal, get_session
from app.models import User
from app.realtime.hub import Broker, RoomHub
from app.services import policy
from app.services.ai.providers import AIProvider, get_ai_provider
from app.services.identity import resolve_user

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Factory for work that outlives the request (background tasks, streams, sockets)."""
    return SessionLocal


def get_provider() -> AIProvider:
    return get_ai_provider()


def get_hub(websocket: WebSocket) -> RoomHub:
    return websocket.app.state.room_hub


def get_broker(websocket: WebSocket) -> Broker:
    return websocket.app.state.broker


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    session: AsyncSession = Depends(get_db_session),
) -> User | None:
    """Caller identity for public routes; a stale or unknown credential reads as anonymous."""
    token = credentials.credentials if credentials is not None else None
    try:
        return await resolve_user(session, external_id=x_user_id, token=token)
    except UnauthorizedError:
        return None


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    session: AsyncSession = Depends(get_db_session),
) -> User:
    token = credentials.credentials if credentials is not None else None
    user = await resolve_user(session, external_id=x_user_id, token=token)
    if user is None:
        raise UnauthorizedError("Authentication required")
    return user


async def get_current_agent(current_user: User = Depends(get_current_user)) -> User:
    if not policy.is_agent(current_user):
        raise ForbiddenError("Agent access required")
    return current_user


async def get_content_editor(current_user: User = Depends(get_current_user)) -> User:
    if not policy.can_manage_content(current_user):
        raise ForbiddenError("Agent access required")
    return current_user
