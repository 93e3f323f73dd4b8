from __future__ import annotations

import math

import pytest

from app.core.config import Settings
from app.services.ai.providers import MockProvider, OpenAIProvider, build_provider
from app.services.ai.similarity import cosine_similarity


@pytest.mark.asyncio
async def test_mock_embeddings_are_unit_length_and_deterministic():
    provider = MockProvider(dimensions=64)
    first = await provider.embed("Cancel my reservation")
    second = await provider.embed("cancel MY reservation!")

    assert len(first) == 64
    assert math.isclose(math.sqrt(sum(value * value for value in first)), 1.0)
    assert first == second


@pytest.mark.asyncio
async def test_mock_embeddings_reward_shared_words():
    provider = MockProvider(dimensions=256)
    query = await provider.embed("electric hookups at campsites")
    related = await provider.embed("Campsites with electric hookups and water")
    unrelated = await provider.embed("Annual pass pricing")

    assert cosine_similarity(query, related) > cosine_similarity(query, unrelated)


@pytest.mark.asyncio
async def test_mock_embedding_of_blank_text_is_zero_vector():
    vector = await MockProvider(dimensions=16).embed("   ")
    assert vector == [0.0] * 16


@pytest.mark.asyncio
async def test_mock_stream_reassembles_to_chat_reply():
    provider = MockProvider()
    messages = [{"role": "system", "content": "persona"}, {"role": "user", "content": "where is my order"}]

    result = await provider.chat(messages, temperature=0.7, max_tokens=100)
    streamed = "".join([part async for part in provider.stream_chat(messages, temperature=0.7, max_tokens=100)])

    assert result.text == "Mock AI response: where is my order"
    assert streamed == result.text


def test_build_provider_picks_openai_only_with_key():
    offline = build_provider(Settings(database_url="sqlite+aiosqlite://", openai_api_key=""))
    online = build_provider(Settings(database_url="sqlite+aiosqlite://", openai_api_key="sk-test", openai_chat_model="gpt-4o-mini"))

    assert isinstance(offline, MockProvider)
    assert isinstance(online, OpenAIProvider)
    assert online.chat_model == "gpt-4o-mini"
