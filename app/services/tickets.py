from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import TicketStatus
from app.core.exceptions import NotFoundError, ValidationAppError
from app.models import Ticket, TicketFile, TicketMessage, User
from app.repositories.ticket import TicketRepository
from app.repositories.user import UserRepository
from app.schemas.ticket import TicketCreate, TicketFileCreate, TicketMessageRead
from app.schemas.user import AuthorRead
from app.services import policy

logger = logging.getLogger(__name__)


class TicketService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = TicketRepository(session)
        self.users = UserRepository(session)

    async def list_for(self, user: User, *, status: TicketStatus | None = None, assigned_to_me: bool = False) -> list[Ticket]:
        if not policy.is_agent(user):
            return await self.repo.list_tickets(requester_id=user.id)
        if status is not None:
            return await self.repo.list_tickets(status=status)
        if assigned_to_me:
            return await self.repo.list_tickets(assignee_id=user.id)
        return await self.repo.list_tickets()

    async def _get(self, ticket_id: int) -> Ticket:
        ticket = await self.repo.get_by_id(ticket_id)
        if ticket is None:
            raise NotFoundError("Ticket not found")
        return ticket

    async def get_for_read(self, user: User, ticket_id: int) -> Ticket:
        ticket = await self._get(ticket_id)
        policy.ensure(policy.can_read_ticket(user, ticket), "You don't have permission to access this ticket")
        return ticket

    async def create(self, requester: User, payload: TicketCreate) -> Ticket:
        ticket, _ = await self.repo.create_ticket(
            requester_id=requester.id,
            subject=payload.subject,
            description=payload.description,
            priority=payload.priority,
            order_number=payload.order_number,
        )
        await self.session.commit()
        logger.info("Ticket %s created by user %s", ticket.id, requester.id)
        return ticket

    async def post_message(
        self,
        author: User,
        ticket_id: int,
        content: str,
        *,
        is_from_ai: bool = False,
    ) -> tuple[Ticket, TicketMessage]:
        ticket = await self._get(ticket_id)
        policy.ensure(policy.can_post_to_ticket(author, ticket), "You don't have permission to post to this ticket")
        if is_from_ai:
            policy.ensure(policy.can_post_as_ai(author), "Only agents can post assistant messages")
        message = await self.repo.add_message(
            ticket,
            author_id=author.id,
            content=content,
            is_from_ai=is_from_ai,
            new_status=policy.status_after_reply(author, ticket),
        )
        await self.session.commit()
        return ticket, message

    async def list_messages(self, user: User, ticket_id: int) -> list[TicketMessage]:
        ticket = await self.get_for_read(user, ticket_id)
        return await self.repo.list_messages(ticket.id)

    async def enrich_messages(self, messages: list[TicketMessage]) -> list[TicketMessageRead]:
        authors = await self.users.get_many({item.author_id for item in messages if item.author_id is not None})
        enriched: list[TicketMessageRead] = []
        for item in messages:
            read = TicketMessageRead.model_validate(item)
            author = authors.get(item.author_id) if item.author_id is not None else None
            if author is not None:
                read.author = AuthorRead.model_validate(author)
            enriched.append(read)
        return enriched

    async def set_status(self, actor: User, ticket_id: int, status: TicketStatus) -> Ticket:
        policy.ensure(policy.can_mutate_status(actor), "Only agents can change ticket status")
        ticket = await self._get(ticket_id)
        ticket = await self.repo.set_status(ticket, status)
        await self.session.commit()
        logger.info("Ticket %s status set to %s by user %s", ticket.id, status.value, actor.id)
        return ticket

    async def assign(self, actor: User, ticket_id: int, assignee_id: int | None) -> Ticket:
        policy.ensure(policy.can_assign(actor), "Only agents can assign tickets")
        ticket = await self._get(ticket_id)
        if assignee_id is not None:
            assignee = await self.users.get_by_id(assignee_id)
            if assignee is None:
                raise NotFoundError("Assignee not found")
            if not policy.can_be_assignee(assignee):
                raise ValidationAppError(
                    "Assignee must be an agent",
                    details={"errors": [{"loc": ["body", "assigneeId"], "msg": "user is not an agent"}]},
                )
        ticket = await self.repo.assign(ticket, assignee_id)
        await self.session.commit()
        return ticket

    async def list_files(self, user: User, ticket_id: int) -> list[TicketFile]:
        ticket = await self.get_for_read(user, ticket_id)
        return await self.repo.list_files(ticket.id)

    async def add_file(self, user: User, ticket_id: int, payload: TicketFileCreate) -> TicketFile:
        ticket = await self._get(ticket_id)
        policy.ensure(policy.can_post_to_ticket(user, ticket), "You don't have permission to post to this ticket")
        item = await self.repo.add_file(ticket, **payload.model_dump())
        await self.session.commit()
        return item
