from __future__ import annotations

from types import SimpleNamespace

import pytest

from app.core.enums import TicketStatus, UserRole
from app.core.exceptions import ForbiddenError
from app.services import policy

visitor = SimpleNamespace(id=1, role=UserRole.VISITOR)
stranger = SimpleNamespace(id=2, role=UserRole.VISITOR)
agent = SimpleNamespace(id=3, role=UserRole.AGENT)


def _ticket(status: TicketStatus = TicketStatus.OPEN):
    return SimpleNamespace(id=10, requester_id=visitor.id, status=status)


def test_requester_and_agents_can_read_ticket():
    ticket = _ticket()
    assert policy.can_read_ticket(visitor, ticket)
    assert policy.can_read_ticket(agent, ticket)
    assert not policy.can_read_ticket(stranger, ticket)
    assert not policy.can_post_to_ticket(stranger, ticket)


def test_only_agents_mutate():
    for check in (policy.can_mutate_status, policy.can_assign, policy.can_manage_content):
        assert check(agent)
        assert not check(visitor)
    assert not policy.is_agent(None)
    assert not policy.can_be_assignee(None)


@pytest.mark.parametrize(
    ("author", "status", "expected"),
    [
        (visitor, TicketStatus.PENDING, TicketStatus.OPEN),
        (visitor, TicketStatus.OPEN, None),
        (visitor, TicketStatus.SOLVED, None),
        (agent, TicketStatus.PENDING, None),
    ],
)
def test_status_after_reply(author, status, expected):
    assert policy.status_after_reply(author, _ticket(status)) == expected


def test_ensure_raises_forbidden():
    policy.ensure(True)
    with pytest.raises(ForbiddenError) as exc_info:
        policy.ensure(False, "nope")
    assert exc_info.value.status_code == 403
    assert exc_info.value.message == "nope"


def test_only_agents_post_as_ai():
    assert policy.can_post_as_ai(agent)
    assert not policy.can_post_as_ai(visitor)


def test_chat_session_access_follows_owner():
    unclaimed = SimpleNamespace(user_id=None)
    owned = SimpleNamespace(user_id=visitor.id)

    assert policy.can_use_chat_session(None, unclaimed)
    assert policy.can_use_chat_session(stranger, unclaimed)
    assert policy.can_use_chat_session(visitor, owned)
    assert policy.can_use_chat_session(agent, owned)
    assert not policy.can_use_chat_session(stranger, owned)
    assert not policy.can_use_chat_session(None, owned)
