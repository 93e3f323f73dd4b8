from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Article, ArticleEmbedding


class ArticleEmbeddingRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_for_article(self, article_id: int) -> ArticleEmbedding | None:
        stmt = select(ArticleEmbedding).where(ArticleEmbedding.article_id == article_id)
        return await self.session.scalar(stmt)

    async def upsert(self, article_id: int, vector: list[float]) -> ArticleEmbedding:
        existing = await self.get_for_article(article_id)
        if existing is not None:
            existing.embedding = vector
            await self.session.flush()
            return existing

        item = ArticleEmbedding(article_id=article_id, embedding=vector)
        try:
            async with self.session.begin_nested():
                self.session.add(item)
        except IntegrityError:
            # A concurrent writer inserted first; the unique constraint keeps
            # one row per article, so overwrite it (last writer wins).
            existing = await self.get_for_article(article_id)
            if existing is None:
                raise
            existing.embedding = vector
            await self.session.flush()
            return existing
        return item

    async def list_published(self) -> list[tuple[Article, list[float]]]:
        stmt = (
            select(Article, ArticleEmbedding.embedding)
            .join(ArticleEmbedding, ArticleEmbedding.article_id == Article.id)
            .where(Article.is_published.is_(True))
            .order_by(ArticleEmbedding.id.asc())
        )
        result = await self.session.execute(stmt)
        return [(article, list(vector or [])) for article, vector in result.all()]
