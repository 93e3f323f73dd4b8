from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationAppError
from app.models import Article, User
from app.repositories.article import ArticleRepository
from app.repositories.category import CategoryRepository
from app.schemas.article import ArticleCreate, ArticleUpdate
from app.services import policy

MIN_SEARCH_LENGTH = 2


class ArticleService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = ArticleRepository(session)
        self.categories = CategoryRepository(session)

    async def _ensure_category(self, category_id: int | None) -> None:
        if category_id is not None and await self.categories.get_by_id(category_id) is None:
            raise NotFoundError("Category not found")

    async def list_articles(self, user: User | None, *, include_drafts: bool = False) -> list[Article]:
        only_published = not (include_drafts and policy.is_agent(user))
        return await self.repo.list_articles(only_published=only_published)

    async def list_by_category(self, category_id: int) -> list[Article]:
        if await self.categories.get_by_id(category_id) is None:
            raise NotFoundError("Category not found")
        return await self.repo.list_by_category(category_id)

    async def search(self, query: str | None) -> list[Article]:
        query = (query or "").strip()
        if len(query) < MIN_SEARCH_LENGTH:
            raise ValidationAppError(
                "Search query is required",
                details={"errors": [{"loc": ["query", "q"], "msg": f"must be at least {MIN_SEARCH_LENGTH} characters"}]},
            )
        return await self.repo.search(query)

    async def view(self, user: User | None, article_id: int) -> Article:
        article = await self.repo.get_by_id(article_id)
        if article is None or (not article.is_published and not policy.is_agent(user)):
            raise NotFoundError("Article not found")
        article = await self.repo.increment_views(article)
        await self.session.commit()
        return article

    async def create(self, author: User, payload: ArticleCreate) -> Article:
        await self._ensure_category(payload.category_id)
        article = await self.repo.create(author_id=author.id, **payload.model_dump())
        await self.session.commit()
        return article

    async def update(self, article_id: int, payload: ArticleUpdate) -> tuple[Article, bool]:
        """Apply a partial edit; the flag says whether the embedding is stale."""
        article = await self.repo.get_by_id(article_id)
        if article is None:
            raise NotFoundError("Article not found")
        values = payload.model_dump(exclude_unset=True)
        for key in ("title", "content", "is_published"):
            if key in values and values[key] is None:
                values.pop(key)
        if "category_id" in values:
            await self._ensure_category(values["category_id"])
        article = await self.repo.update(article, **values)
        await self.session.commit()
        return article, "title" in values or "content" in values
