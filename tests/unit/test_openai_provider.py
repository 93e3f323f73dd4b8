from __future__ import annotations

import json

import httpx
import pytest

from app.core.exceptions import EmbeddingError, ProviderError
from app.services.ai.providers import OpenAIProvider


def _provider(handler) -> OpenAIProvider:
    provider = OpenAIProvider("sk-test", base_url="https://llm.test/v1")
    provider._client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url=provider.base_url,
        headers={"Authorization": "Bearer sk-test"},
    )
    return provider


@pytest.mark.asyncio
async def test_embed_posts_model_and_returns_vector():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        captured["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={"data": [{"embedding": [0.1, 0.2, 0.3]}]})

    provider = _provider(handler)
    vector = await provider.embed("refund policy")
    await provider.aclose()

    assert vector == [0.1, 0.2, 0.3]
    assert captured["path"] == "/v1/embeddings"
    assert captured["body"] == {"model": "text-embedding-3-small", "input": "refund policy"}
    assert captured["auth"] == "Bearer sk-test"


@pytest.mark.asyncio
async def test_embed_http_error_becomes_embedding_error():
    provider = _provider(lambda request: httpx.Response(500, json={"error": "boom"}))
    with pytest.raises(EmbeddingError):
        await provider.embed("text")


@pytest.mark.asyncio
async def test_chat_reads_first_choice_and_usage():
    payload = {
        "model": "gpt-4o",
        "choices": [{"message": {"role": "assistant", "content": "Hello there"}}],
        "usage": {"prompt_tokens": 12, "completion_tokens": 3},
    }
    provider = _provider(lambda request: httpx.Response(200, json=payload))

    result = await provider.chat([{"role": "user", "content": "hi"}], temperature=0.7, max_tokens=50)

    assert result.text == "Hello there"
    assert (result.tokens_in, result.tokens_out) == (12, 3)


@pytest.mark.asyncio
async def test_chat_failure_becomes_provider_error():
    provider = _provider(lambda request: httpx.Response(429, json={"error": "rate limited"}))
    with pytest.raises(ProviderError):
        await provider.chat([{"role": "user", "content": "hi"}], temperature=0.7, max_tokens=50)


@pytest.mark.asyncio
async def test_stream_parses_server_sent_deltas():
    lines = [
        'data: {"choices": [{"delta": {"role": "assistant"}}]}',
        "",
        'data: {"choices": [{"delta": {"content": "Hel"}}]}',
        "",
        ": keep-alive",
        'data: {"choices": [{"delta": {"content": "lo"}}]}',
        "",
        "data: [DONE]",
        "",
    ]
    body = "\n".join(lines).encode()

    def handler(request: httpx.Request) -> httpx.Response:
        assert json.loads(request.content)["stream"] is True
        return httpx.Response(200, content=body, headers={"Content-Type": "text/event-stream"})

    provider = _provider(handler)
    parts = [part async for part in provider.stream_chat([{"role": "user", "content": "hi"}], temperature=0.7, max_tokens=50)]

    assert parts == ["Hel", "lo"]
