from __future__ import annotations

from types import SimpleNamespace

import pytest

from app.core.config import get_settings
from app.services.ai.chat import (
    APOLOGY_REPLY,
    CONTEXT_PREAMBLE,
    EMPTY_REPLY,
    SYSTEM_PROMPT,
    ChatAssistant,
    build_messages,
)
from app.services.ai.providers import AIProviderResult
from app.services.ai.similarity import ScoredArticle


class FakeSearch:
    def __init__(self, articles=None, error: Exception | None = None) -> None:
        self.articles = articles or []
        self.error = error
        self.calls: list[tuple[str, int]] = []

    async def find_relevant_articles(self, query: str, limit: int = 3):
        self.calls.append((query, limit))
        if self.error is not None:
            raise self.error
        return self.articles[:limit]


class ScriptedProvider:
    def __init__(self, text: str = "", fragments=None, fail_after: int | None = None) -> None:
        self.text = text
        self.fragments = fragments or []
        self.fail_after = fail_after
        self.seen_messages = None

    async def chat(self, messages, *, temperature, max_tokens):
        self.seen_messages = messages
        return AIProviderResult(text=self.text, provider="fake", model="fake")

    async def stream_chat(self, messages, *, temperature, max_tokens):
        self.seen_messages = messages
        for index, fragment in enumerate(self.fragments):
            if self.fail_after is not None and index >= self.fail_after:
                raise RuntimeError("stream dropped")
            yield fragment


class FailingProvider(ScriptedProvider):
    async def chat(self, messages, *, temperature, max_tokens):
        raise RuntimeError("upstream 503")


def _scored(title: str, content: str, score: float = 0.9) -> ScoredArticle:
    return ScoredArticle(article=SimpleNamespace(title=title, content=content), similarity=score)


def _assistant(search, provider) -> ChatAssistant:
    return ChatAssistant(search, provider, get_settings())


def test_build_messages_orders_context_persona_history_query():
    history = [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
        {"role": "tool", "content": "ignored"},
        {"role": "user", "content": ""},
    ]
    messages = build_messages(history, "where is my refund?", "Article: Refunds\nbody")

    assert [item["role"] for item in messages] == ["system", "system", "user", "assistant", "user"]
    assert messages[0]["content"] == f"{CONTEXT_PREAMBLE}Article: Refunds\nbody"
    assert messages[1]["content"] == SYSTEM_PROMPT
    assert messages[-1] == {"role": "user", "content": "where is my refund?"}


def test_build_messages_without_context_skips_context_block():
    messages = build_messages([], "question", "")
    assert messages == [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "question"},
    ]


@pytest.mark.asyncio
async def test_chat_completion_injects_retrieved_articles():
    search = FakeSearch([_scored("Hookups", "30A and 50A sites"), _scored("Fees", "Nightly fee")])
    provider = ScriptedProvider(text="Sites have 30A hookups.")

    reply = await _assistant(search, provider).chat_completion([], "camping hookups")

    assert reply == "Sites have 30A hookups."
    assert search.calls == [("camping hookups", get_settings().ai_context_articles)]
    context = provider.seen_messages[0]["content"]
    assert "Article: Hookups\n30A and 50A sites" in context
    assert "Article: Fees\nNightly fee" in context


@pytest.mark.asyncio
async def test_chat_completion_empty_text_falls_back():
    reply = await _assistant(FakeSearch(), ScriptedProvider(text="")).chat_completion([], "q")
    assert reply == EMPTY_REPLY


@pytest.mark.asyncio
async def test_chat_completion_provider_failure_returns_apology():
    reply = await _assistant(FakeSearch(), FailingProvider()).chat_completion([], "q")
    assert reply == APOLOGY_REPLY


@pytest.mark.asyncio
async def test_chat_completion_retrieval_failure_returns_apology():
    search = FakeSearch(error=RuntimeError("db down"))
    reply = await _assistant(search, ScriptedProvider(text="never")).chat_completion([], "q")
    assert reply == APOLOGY_REPLY


@pytest.mark.asyncio
async def test_stream_emits_fragments_then_single_terminal_chunk():
    provider = ScriptedProvider(fragments=["Hel", "", "lo"])

    chunks = [chunk async for chunk in _assistant(FakeSearch(), provider).stream_chat_response([], "q")]

    assert [(chunk.text, chunk.done) for chunk in chunks] == [("Hel", False), ("lo", False), ("", True)]


@pytest.mark.asyncio
async def test_stream_failure_ends_with_apology_chunk():
    provider = ScriptedProvider(fragments=["partial ", "more"], fail_after=1)

    chunks = [chunk async for chunk in _assistant(FakeSearch(), provider).stream_chat_response([], "q")]

    assert chunks[0].text == "partial " and not chunks[0].done
    assert chunks[-1].text == APOLOGY_REPLY and chunks[-1].done
    assert sum(1 for chunk in chunks if chunk.done) == 1
