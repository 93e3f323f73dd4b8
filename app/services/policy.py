"""Authorization rules, one function per decision.

Handlers call these instead of branching on roles inline so the HTTP and
realtime paths enforce the same rules.
"""

from __future__ import annotations

from app.core.enums import TicketStatus, UserRole
from app.core.exceptions import ForbiddenError
from app.models import ChatSession, Ticket, User


def is_agent(user: User | None) -> bool:
    return user is not None and user.role == UserRole.AGENT


def can_read_ticket(user: User, ticket: Ticket) -> bool:
    return is_agent(user) or ticket.requester_id == user.id


def can_post_to_ticket(user: User, ticket: Ticket) -> bool:
    return can_read_ticket(user, ticket)


def can_mutate_status(user: User) -> bool:
    return is_agent(user)


def can_assign(user: User) -> bool:
    return is_agent(user)


def can_manage_content(user: User) -> bool:
    return is_agent(user)


def can_be_assignee(user: User | None) -> bool:
    return is_agent(user)


def can_post_as_ai(user: User) -> bool:
    return is_agent(user)


def can_use_chat_session(user: User | None, chat_session: ChatSession) -> bool:
    # Unclaimed sessions are open to whoever holds the id.
    if chat_session.user_id is None:
        return True
    return user is not None and (user.id == chat_session.user_id or is_agent(user))


def status_after_reply(user: User, ticket: Ticket) -> TicketStatus | None:
    # A requester answering a pending ticket hands it back to the agents.
    if not is_agent(user) and ticket.status == TicketStatus.PENDING:
        return TicketStatus.OPEN
    return None


def ensure(allowed: bool, message: str = "Forbidden") -> None:
    if not allowed:
        raise ForbiddenError(message)
