from __future__ import annotations

from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import TicketAnalytics


class AnalyticsRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_range(self, start: date, end: date) -> list[TicketAnalytics]:
        stmt = (
            select(TicketAnalytics)
            .where(TicketAnalytics.date >= start, TicketAnalytics.date <= end)
            .order_by(TicketAnalytics.date.asc())
        )
        result = await self.session.scalars(stmt)
        return list(result.all())

    async def create(self, *, day: date, ticket_volume: int, avg_resolution_time: float | None = None) -> TicketAnalytics:
        item = TicketAnalytics(date=day, ticket_volume=ticket_volume, avg_resolution_time=avg_resolution_time)
        self.session.add(item)
        await self.session.flush()
        return item
