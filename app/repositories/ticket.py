from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import TicketPriority, TicketStatus
from app.models import Ticket, TicketFile, TicketMessage


class TicketRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, ticket_id: int) -> Ticket | None:
        return await self.session.scalar(select(Ticket).where(Ticket.id == ticket_id))

    async def list_tickets(
        self,
        *,
        status: TicketStatus | None = None,
        assignee_id: int | None = None,
        requester_id: int | None = None,
    ) -> list[Ticket]:
        stmt = select(Ticket).order_by(Ticket.updated_at.desc(), Ticket.id.desc())
        if status is not None:
            stmt = stmt.where(Ticket.status == status)
        if assignee_id is not None:
            stmt = stmt.where(Ticket.assignee_id == assignee_id)
        if requester_id is not None:
            stmt = stmt.where(Ticket.requester_id == requester_id)
        result = await self.session.scalars(stmt)
        return list(result.all())

    async def create_ticket(
        self,
        *,
        requester_id: int,
        subject: str,
        description: str,
        priority: TicketPriority = TicketPriority.NORMAL,
        order_number: str | None = None,
    ) -> tuple[Ticket, TicketMessage]:
        ticket = Ticket(
            requester_id=requester_id,
            subject=subject.strip(),
            description=description,
            priority=priority,
            status=TicketStatus.OPEN,
            order_number=order_number,
        )
        self.session.add(ticket)
        await self.session.flush()
        message = TicketMessage(
            ticket_id=ticket.id,
            author_id=requester_id,
            content=ticket.description,
            is_from_ai=False,
        )
        self.session.add(message)
        await self.session.flush()
        return ticket, message

    async def add_message(
        self,
        ticket: Ticket,
        *,
        author_id: int | None,
        content: str,
        is_from_ai: bool = False,
        new_status: TicketStatus | None = None,
    ) -> TicketMessage:
        message = TicketMessage(
            ticket_id=ticket.id,
            author_id=author_id,
            content=content,
            is_from_ai=is_from_ai,
        )
        self.session.add(message)
        if new_status is not None:
            ticket.status = new_status
        ticket.updated_at = datetime.now(timezone.utc)
        await self.session.flush()
        return message

    async def list_messages(self, ticket_id: int) -> list[TicketMessage]:
        stmt = (
            select(TicketMessage)
            .where(TicketMessage.ticket_id == ticket_id)
            .order_by(TicketMessage.created_at.asc(), TicketMessage.id.asc())
        )
        result = await self.session.scalars(stmt)
        return list(result.all())

    async def set_status(self, ticket: Ticket, status: TicketStatus) -> Ticket:
        # Status and timestamp change in one statement so they never diverge.
        await self.session.execute(
            update(Ticket)
            .where(Ticket.id == ticket.id)
            .values(status=status, updated_at=datetime.now(timezone.utc))
        )
        await self.session.refresh(ticket)
        return ticket

    async def assign(self, ticket: Ticket, assignee_id: int | None) -> Ticket:
        await self.session.execute(
            update(Ticket)
            .where(Ticket.id == ticket.id)
            .values(assignee_id=assignee_id, updated_at=datetime.now(timezone.utc))
        )
        await self.session.refresh(ticket)
        return ticket

    async def list_files(self, ticket_id: int) -> list[TicketFile]:
        stmt = (
            select(TicketFile)
            .where(TicketFile.ticket_id == ticket_id)
            .order_by(TicketFile.created_at.desc(), TicketFile.id.desc())
        )
        result = await self.session.scalars(stmt)
        return list(result.all())

    async def add_file(self, ticket: Ticket, **values) -> TicketFile:
        item = TicketFile(ticket_id=ticket.id, **values)
        self.session.add(item)
        await self.session.flush()
        return item

    async def count_by_status(self) -> dict[TicketStatus, int]:
        stmt = select(Ticket.status, func.count()).group_by(Ticket.status)
        result = await self.session.execute(stmt)
        counts = {status: 0 for status in TicketStatus}
        for status, value in result.all():
            counts[TicketStatus(status)] = int(value or 0)
        return counts

    async def count_unassigned(self) -> int:
        stmt = (
            select(func.count())
            .select_from(Ticket)
            .where(Ticket.status != TicketStatus.SOLVED, Ticket.assignee_id.is_(None))
        )
        value = await self.session.scalar(stmt)
        return int(value or 0)
