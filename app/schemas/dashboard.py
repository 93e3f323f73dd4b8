from __future__ import annotations

import datetime as dt

from app.schemas.common import BaseReadModel, CamelModel


class DashboardStats(CamelModel):
    open_tickets: int
    pending_tickets: int
    solved_tickets: int
    total_articles: int
    unassigned_tickets: int


class TicketAnalyticsRead(BaseReadModel):
    id: int
    date: dt.date
    ticket_volume: int
    avg_resolution_time: float | None = None
    created_at: dt.datetime
