from __future__ import annotations

from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_agent, get_db_session
from app.core.enums import TicketStatus
from app.core.exceptions import ValidationAppError
from app.core.responses import success_response
from app.models import User
from app.repositories.analytics import AnalyticsRepository
from app.repositories.article import ArticleRepository
from app.repositories.ticket import TicketRepository
from app.schemas.dashboard import DashboardStats, TicketAnalyticsRead

router = APIRouter(tags=["Dashboard"])

DEFAULT_ANALYTICS_DAYS = 30


@router.get("/dashboard/stats")
async def dashboard_stats(
    request: Request,
    _agent: User = Depends(get_current_agent),
    session: AsyncSession = Depends(get_db_session),
):
    tickets = TicketRepository(session)
    by_status = await tickets.count_by_status()
    stats = DashboardStats(
        open_tickets=by_status.get(TicketStatus.OPEN, 0),
        pending_tickets=by_status.get(TicketStatus.PENDING, 0),
        solved_tickets=by_status.get(TicketStatus.SOLVED, 0),
        total_articles=await ArticleRepository(session).count_published(),
        unassigned_tickets=await tickets.count_unassigned(),
    )
    return success_response(data=stats, request=request)


@router.get("/analytics")
async def ticket_analytics(
    request: Request,
    date_from: date | None = Query(default=None, alias="from"),
    date_to: date | None = Query(default=None, alias="to"),
    _agent: User = Depends(get_current_agent),
    session: AsyncSession = Depends(get_db_session),
):
    date_to = date_to or date.today()
    date_from = date_from or date_to - timedelta(days=DEFAULT_ANALYTICS_DAYS)
    if date_from > date_to:
        raise ValidationAppError(
            "Invalid date range",
            details={"errors": [{"loc": ["query", "from"], "msg": "must not be after 'to'"}]},
        )
    rows = await AnalyticsRepository(session).list_range(date_from, date_to)
    return success_response(data=[TicketAnalyticsRead.model_validate(item) for item in rows], request=request)
