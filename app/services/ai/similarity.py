from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import EmbeddingError
from app.models import Article
from app.repositories.article import ArticleRepository
from app.repositories.embedding import ArticleEmbeddingRepository
from app.services.ai.providers import AIProvider

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| * |b|); 0.0 for mismatched lengths or zero vectors."""
    if len(a) != len(b) or not a:
        return 0.0
    dot = math.fsum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(math.fsum(x * x for x in a))
    norm_b = math.sqrt(math.fsum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


@dataclass(slots=True)
class ScoredArticle:
    article: Article
    similarity: float


class SimilaritySearchService:
    """Exhaustive cosine-similarity search over stored article embeddings.

    Every query scans all published embeddings; there is no vector index, so
    this is only suitable for small knowledge bases.
    """

    def __init__(self, session: AsyncSession, provider: AIProvider) -> None:
        self.session = session
        self.provider = provider
        self.embeddings = ArticleEmbeddingRepository(session)

    async def embed(self, text: str) -> list[float]:
        try:
            vector = await self.provider.embed(text)
        except EmbeddingError:
            raise
        except Exception as exc:
            raise EmbeddingError(f"Embedding provider failed: {exc}") from exc
        if not vector:
            raise EmbeddingError("Embedding provider returned an empty vector")
        return vector

    async def upsert_article_embedding(self, article_id: int, text: str) -> None:
        vector = await self.embed(text)
        await self.embeddings.upsert(article_id, vector)

    async def find_relevant_articles(self, query: str, limit: int = 3) -> list[ScoredArticle]:
        query_vector = await self.embed(query)
        rows = await self.embeddings.list_published()
        scored = [ScoredArticle(article=article, similarity=cosine_similarity(query_vector, vector)) for article, vector in rows]
        # sorted() is stable: ties keep scan order.
        scored = sorted(scored, key=lambda item: item.similarity, reverse=True)
        return scored[: max(0, limit)]


async def refresh_article_embedding(
    session_factory: async_sessionmaker[AsyncSession],
    provider: AIProvider,
    article_id: int,
) -> None:
    """Recompute an article's embedding outside the request that changed it.

    Failures are logged and dropped; the article write has already been
    committed and the next edit will try again.
    """
    async with session_factory() as session:
        try:
            article = await ArticleRepository(session).get_by_id(article_id)
            if article is None:
                return
            service = SimilaritySearchService(session, provider)
            await service.upsert_article_embedding(article.id, article.embedding_text)
            await session.commit()
        except Exception:
            await session.rollback()
            logger.exception("Failed to refresh embedding for article %s", article_id)
