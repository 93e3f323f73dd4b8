from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import ChatMessage, ChatSession


class ChatRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_session(self, session_id: str) -> ChatSession | None:
        return await self.session.scalar(select(ChatSession).where(ChatSession.session_id == session_id))

    async def get_or_create_session(self, session_id: str, user_id: int | None = None) -> ChatSession:
        item = await self.get_session(session_id)
        if item is not None:
            if item.user_id is None and user_id is not None:
                item.user_id = user_id
                await self.session.flush()
            return item
        item = ChatSession(session_id=session_id, user_id=user_id)
        self.session.add(item)
        await self.session.flush()
        return item

    async def list_messages(self, chat_session: ChatSession, limit: int | None = None) -> Sequence[ChatMessage]:
        stmt = (
            select(ChatMessage)
            .where(ChatMessage.session_id == chat_session.id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.scalars(stmt)
        return list(reversed(result.all()))

    async def add_message(self, chat_session: ChatSession, *, content: str, is_from_user: bool) -> ChatMessage:
        item = ChatMessage(session_id=chat_session.id, content=content, is_from_user=is_from_user)
        self.session.add(item)
        chat_session.updated_at = datetime.now(timezone.utc)
        await self.session.flush()
        return item
