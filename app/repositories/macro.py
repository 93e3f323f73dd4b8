from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Macro


class MacroRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_all(self) -> list[Macro]:
        result = await self.session.scalars(select(Macro).order_by(Macro.title.asc()))
        return list(result.all())

    async def get_by_id(self, macro_id: int) -> Macro | None:
        return await self.session.scalar(select(Macro).where(Macro.id == macro_id))

    async def create(self, *, title: str, content: str, created_by_id: int) -> Macro:
        macro = Macro(title=title, content=content, created_by_id=created_by_id)
        self.session.add(macro)
        await self.session.flush()
        return macro
