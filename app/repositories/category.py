from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Category


class CategoryRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_all(self) -> list[Category]:
        result = await self.session.scalars(select(Category).order_by(Category.name.asc()))
        return list(result.all())

    async def get_by_id(self, category_id: int) -> Category | None:
        return await self.session.scalar(select(Category).where(Category.id == category_id))

    async def create(self, **values) -> Category:
        category = Category(**values)
        self.session.add(category)
        await self.session.flush()
        return category

    async def update(self, category: Category, **values) -> Category:
        for key, value in values.items():
            setattr(category, key, value)
        await self.session.flush()
        return category
