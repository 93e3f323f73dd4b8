from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Article


class ArticleRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_articles(self, *, only_published: bool = True) -> list[Article]:
        stmt = select(Article).order_by(Article.updated_at.desc(), Article.id.desc())
        if only_published:
            stmt = stmt.where(Article.is_published.is_(True))
        result = await self.session.scalars(stmt)
        return list(result.all())

    async def list_by_category(self, category_id: int) -> list[Article]:
        stmt = (
            select(Article)
            .where(Article.category_id == category_id, Article.is_published.is_(True))
            .order_by(Article.updated_at.desc(), Article.id.desc())
        )
        result = await self.session.scalars(stmt)
        return list(result.all())

    async def search(self, query: str) -> list[Article]:
        term = query.strip().lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{term}%"
        stmt = (
            select(Article)
            .where(
                Article.is_published.is_(True),
                or_(
                    func.lower(Article.title).like(pattern, escape="\\"),
                    func.lower(Article.content).like(pattern, escape="\\"),
                ),
            )
            .order_by(Article.updated_at.desc(), Article.id.desc())
        )
        result = await self.session.scalars(stmt)
        return list(result.all())

    async def get_by_id(self, article_id: int) -> Article | None:
        return await self.session.scalar(select(Article).where(Article.id == article_id))

    async def create(self, **values) -> Article:
        article = Article(**values)
        self.session.add(article)
        await self.session.flush()
        return article

    async def update(self, article: Article, **values) -> Article:
        for key, value in values.items():
            setattr(article, key, value)
        article.updated_at = datetime.now(timezone.utc)
        await self.session.flush()
        return article

    async def increment_views(self, article: Article) -> Article:
        # Single UPDATE so concurrent readers never lose increments.
        await self.session.execute(
            update(Article).where(Article.id == article.id).values(view_count=Article.view_count + 1)
        )
        await self.session.refresh(article, attribute_names=["view_count"])
        return article

    async def count_published(self) -> int:
        value = await self.session.scalar(select(func.count()).select_from(Article).where(Article.is_published.is_(True)))
        return int(value or 0)
