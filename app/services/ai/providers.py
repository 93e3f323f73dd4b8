from __future__ import annotations

import abc
import hashlib
import json
import math
import re
from collections.abc import AsyncIterator
from dataclasses import dataclass
from functools import lru_cache

import httpx

from app.core.config import Settings, get_settings
from app.core.exceptions import EmbeddingError, ProviderError

_TOKEN_RE = re.compile(r"[a-z0-9]+")


@dataclass(slots=True)
class AIProviderResult:
    text: str
    provider: str
    model: str
    tokens_in: int = 0
    tokens_out: int = 0


class AIProvider(abc.ABC):
    name: str = "abstract"

    @abc.abstractmethod
    async def embed(self, text: str) -> list[float]:
        raise NotImplementedError

    @abc.abstractmethod
    async def chat(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
    ) -> AIProviderResult:
        raise NotImplementedError

    @abc.abstractmethod
    def stream_chat(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
    ) -> AsyncIterator[str]:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class OpenAIProvider(AIProvider):
    name = "openai"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.openai.com/v1",
        chat_model: str = "gpt-4o",
        embedding_model: str = "text-embedding-3-small",
        timeout_ms: int = 30000,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.chat_model = chat_model
        self.embedding_model = embedding_model
        self.timeout = timeout_ms / 1000
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def embed(self, text: str) -> list[float]:
        body = {"model": self.embedding_model, "input": text}
        try:
            response = await self.client.post("/embeddings", json=body)
            response.raise_for_status()
            payload = response.json()
            vector = payload["data"][0]["embedding"]
        except (httpx.HTTPError, json.JSONDecodeError, KeyError, IndexError, TypeError) as exc:
            raise EmbeddingError(f"Embedding request failed: {exc}") from exc
        if not isinstance(vector, list) or not vector:
            raise EmbeddingError("Embedding response was empty")
        return [float(value) for value in vector]

    async def chat(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
    ) -> AIProviderResult:
        body = {
            "model": self.chat_model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        try:
            response = await self.client.post("/chat/completions", json=body)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, json.JSONDecodeError) as exc:
            raise ProviderError(f"Chat completion failed: {exc}") from exc

        choices = payload.get("choices") or []
        text = ""
        if choices:
            text = (choices[0].get("message") or {}).get("content") or ""
        usage = payload.get("usage") or {}
        return AIProviderResult(
            text=text,
            provider=self.name,
            model=payload.get("model", self.chat_model),
            tokens_in=usage.get("prompt_tokens", 0),
            tokens_out=usage.get("completion_tokens", 0),
        )

    async def stream_chat(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
    ) -> AsyncIterator[str]:
        body = {
            "model": self.chat_model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "stream": True,
        }
        try:
            async with self.client.stream("POST", "/chat/completions", json=body) as response:
                response.raise_for_status()
                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    data = line[len("data:"):].strip()
                    if data == "[DONE]":
                        break
                    payload = json.loads(data)
                    choices = payload.get("choices") or []
                    if not choices:
                        continue
                    delta = (choices[0].get("delta") or {}).get("content")
                    if delta:
                        yield delta
        except (httpx.HTTPError, json.JSONDecodeError) as exc:
            raise ProviderError(f"Chat stream failed: {exc}") from exc


class MockProvider(AIProvider):
    """Offline provider used when no API key is configured.

    Embeddings are hashed bag-of-words vectors, so texts sharing words score
    higher than unrelated ones and search stays meaningful in development.
    """

    name = "mock"

    def __init__(self, dimensions: int = 256) -> None:
        self.dimensions = max(8, dimensions)

    async def embed(self, text: str) -> list[float]:
        vector = [0.0] * self.dimensions
        for token in _TOKEN_RE.findall(text.lower()):
            digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
            vector[int.from_bytes(digest, "big") % self.dimensions] += 1.0
        norm = math.sqrt(sum(value * value for value in vector))
        if norm == 0:
            return vector
        return [value / norm for value in vector]

    async def chat(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
    ) -> AIProviderResult:
        return AIProviderResult(
            text=self._reply(messages),
            provider=self.name,
            model="mock-v1",
        )

    async def stream_chat(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
    ) -> AsyncIterator[str]:
        words = self._reply(messages).split(" ")
        for index, word in enumerate(words):
            yield word if index == len(words) - 1 else f"{word} "

    @staticmethod
    def _reply(messages: list[dict[str, str]]) -> str:
        query = next((item["content"] for item in reversed(messages) if item.get("role") == "user"), "")
        return f"Mock AI response: {query[:200]}"


def build_provider(settings: Settings) -> AIProvider:
    if settings.openai_api_key:
        return OpenAIProvider(
            settings.openai_api_key,
            base_url=settings.openai_base_url,
            chat_model=settings.openai_chat_model,
            embedding_model=settings.openai_embedding_model,
            timeout_ms=settings.ai_timeout_ms,
        )
    return MockProvider(dimensions=settings.embedding_dimensions)


@lru_cache(maxsize=1)
def get_ai_provider() -> AIProvider:
    return build_provider(get_settings())
