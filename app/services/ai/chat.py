from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

from app.core.config import Settings, get_settings
from app.core.enums import ChatRole
from app.services.ai.providers import AIProvider
from app.services.ai.similarity import ScoredArticle, SimilaritySearchService

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are the Help Desk Assistant, a helpful AI that answers visitor questions about our "
    "products, reservations, policies and features.\n"
    "Provide clear, accurate information. If you don't know the answer, say so and suggest "
    "the visitor submit a support ticket for personalized assistance.\n"
    "Be friendly, concise, and informative.\n"
    "Base your answers on the knowledge base articles provided in the context."
)
CONTEXT_PREAMBLE = "Here are some relevant knowledge base articles that may help with the query:\n\n"
EMPTY_REPLY = "I'm sorry, I couldn't generate a response."
APOLOGY_REPLY = (
    "I apologize, but I'm having trouble processing your request. "
    "Please try again later or submit a support ticket for assistance."
)

_HISTORY_ROLES = {role.value for role in ChatRole}


@dataclass(frozen=True, slots=True)
class ChatChunk:
    text: str
    done: bool = False


def format_context(articles: list[ScoredArticle]) -> str:
    return "\n\n".join(f"Article: {item.article.title}\n{item.article.content}" for item in articles)


def build_messages(history: list[dict[str, str]], query: str, context: str) -> list[dict[str, str]]:
    messages: list[dict[str, str]] = []
    if context:
        messages.append({"role": ChatRole.SYSTEM.value, "content": f"{CONTEXT_PREAMBLE}{context}"})
    messages.append({"role": ChatRole.SYSTEM.value, "content": SYSTEM_PROMPT})
    for item in history:
        role = item.get("role", "")
        content = item.get("content", "")
        if role in _HISTORY_ROLES and content:
            messages.append({"role": role, "content": content})
    messages.append({"role": ChatRole.USER.value, "content": query})
    return messages


class ChatAssistant:
    """Knowledge-base grounded chat completion.

    Errors from retrieval or generation never escape: callers get an apology
    string (single shot) or an apology as the terminal chunk (streaming).
    """

    def __init__(
        self,
        search: SimilaritySearchService,
        provider: AIProvider,
        settings: Settings | None = None,
    ) -> None:
        self.search = search
        self.provider = provider
        self.settings = settings or get_settings()

    async def _prepare(self, history: list[dict[str, str]], query: str) -> list[dict[str, str]]:
        relevant = await self.search.find_relevant_articles(query, limit=self.settings.ai_context_articles)
        return build_messages(history, query, format_context(relevant))

    async def chat_completion(self, history: list[dict[str, str]], query: str) -> str:
        try:
            messages = await self._prepare(history, query)
            result = await self.provider.chat(
                messages,
                temperature=self.settings.ai_temperature,
                max_tokens=self.settings.ai_max_tokens,
            )
        except Exception:
            logger.exception("Chat completion failed")
            return APOLOGY_REPLY
        return result.text or EMPTY_REPLY

    async def stream_chat_response(self, history: list[dict[str, str]], query: str) -> AsyncIterator[ChatChunk]:
        try:
            messages = await self._prepare(history, query)
            async for fragment in self.provider.stream_chat(
                messages,
                temperature=self.settings.ai_temperature,
                max_tokens=self.settings.ai_max_tokens,
            ):
                if fragment:
                    yield ChatChunk(fragment)
        except Exception:
            logger.exception("Streaming chat response failed")
            yield ChatChunk(APOLOGY_REPLY, done=True)
            return
        yield ChatChunk("", done=True)
