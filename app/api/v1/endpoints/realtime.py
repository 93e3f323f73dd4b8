from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.deps import get_broker, get_hub, get_provider, get_session_factory
from app.core.exceptions import UnauthorizedError
from app.realtime.gateway import ClientConnection, RealtimeGateway
from app.realtime.hub import Broker, RoomHub
from app.services.ai.providers import AIProvider
from app.services.identity import resolve_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    user_id: str | None = Query(default=None, alias="userId"),
    token: str | None = Query(default=None),
    hub: RoomHub = Depends(get_hub),
    broker: Broker = Depends(get_broker),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    provider: AIProvider = Depends(get_provider),
):
    try:
        async with session_factory() as session:
            user = await resolve_user(session, external_id=user_id, token=token)
    except UnauthorizedError:
        user = None
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    connection = ClientConnection(websocket, user)
    gateway = RealtimeGateway(hub, broker, session_factory, provider)
    logger.info("Realtime connection %s opened for user %s", connection.id, user.id)
    try:
        while True:
            raw = await websocket.receive_text()
            await gateway.handle_text(connection, raw)
    except WebSocketDisconnect:
        pass
    finally:
        gateway.disconnect(connection)
        logger.info("Realtime connection %s closed", connection.id)
