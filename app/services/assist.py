from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.enums import ChatRole
from app.models import ChatSession, User
from app.repositories.chat import ChatRepository
from app.services import policy
from app.services.ai.chat import ChatAssistant, ChatChunk
from app.services.ai.providers import AIProvider
from app.services.ai.similarity import SimilaritySearchService

SESSION_FORBIDDEN = "You don't have permission to access this chat session"


class AssistService:
    """AI assistant conversations, persisted per opaque session id.

    Without a session id an exchange is one-shot and nothing is stored. A
    session claimed by a user is only readable and extendable by that user
    or an agent.
    """

    def __init__(self, session: AsyncSession, provider: AIProvider, settings: Settings | None = None) -> None:
        self.session = session
        self.settings = settings or get_settings()
        self.chats = ChatRepository(session)
        self.assistant = ChatAssistant(SimilaritySearchService(session, provider), provider, self.settings)

    async def check_access(self, session_id: str | None, user: User | None) -> None:
        if not session_id:
            return
        chat_session = await self.chats.get_session(session_id)
        if chat_session is not None:
            policy.ensure(policy.can_use_chat_session(user, chat_session), SESSION_FORBIDDEN)

    async def _open(self, session_id: str | None, user: User | None) -> tuple[ChatSession | None, list[dict[str, str]]]:
        if not session_id:
            return None, []
        await self.check_access(session_id, user)
        chat_session = await self.chats.get_or_create_session(session_id, user.id if user else None)
        messages = await self.chats.list_messages(chat_session, limit=self.settings.ai_history_messages)
        history = [
            {"role": (ChatRole.USER if item.is_from_user else ChatRole.ASSISTANT).value, "content": item.content}
            for item in messages
        ]
        return chat_session, history

    async def _record(self, chat_session: ChatSession | None, query: str, reply: str) -> None:
        if chat_session is None:
            return
        await self.chats.add_message(chat_session, content=query, is_from_user=True)
        if reply:
            await self.chats.add_message(chat_session, content=reply, is_from_user=False)
        await self.session.commit()

    async def answer(self, query: str, *, session_id: str | None = None, user: User | None = None) -> str:
        chat_session, history = await self._open(session_id, user)
        reply = await self.assistant.chat_completion(history, query)
        await self._record(chat_session, query, reply)
        return reply

    async def stream(
        self,
        query: str,
        *,
        session_id: str | None = None,
        user: User | None = None,
    ) -> AsyncIterator[ChatChunk]:
        chat_session, history = await self._open(session_id, user)
        parts: list[str] = []
        async for chunk in self.assistant.stream_chat_response(history, query):
            parts.append(chunk.text)
            yield chunk
        await self._record(chat_session, query, "".join(parts))

    async def history(self, session_id: str, user: User | None):
        chat_session = await self.chats.get_session(session_id)
        if chat_session is None:
            return []
        policy.ensure(policy.can_use_chat_session(user, chat_session), SESSION_FORBIDDEN)
        return await self.chats.list_messages(chat_session)
