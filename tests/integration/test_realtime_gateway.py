from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.core.security import create_identity_token
from app.main import app
from app.realtime.gateway import ClientConnection, RealtimeGateway
from app.realtime.hub import LocalBroker, RoomHub, ticket_room
from app.repositories.ticket import TicketRepository

pytestmark = pytest.mark.integration


class FakeSocket:
    def __init__(self) -> None:
        self.sent: list[dict] = []

    async def send_json(self, data) -> None:
        self.sent.append(data)

    def events(self, name: str | None = None) -> list[dict]:
        return [item for item in self.sent if name is None or item["event"] == name]


@pytest.fixture()
def gateway(session_factory, provider) -> RealtimeGateway:
    hub = RoomHub()
    return RealtimeGateway(hub, LocalBroker(hub), session_factory, provider)


@pytest.fixture()
async def ticket(session_factory, users):
    async with session_factory() as session:
        created, _ = await TicketRepository(session).create_ticket(
            requester_id=users["visitor"].id,
            subject="Broken lantern",
            description="The lantern I rented does not turn on",
        )
        await session.commit()
    return created


def _connect(user) -> tuple[ClientConnection, FakeSocket]:
    socket = FakeSocket()
    return ClientConnection(socket, user), socket


async def _send(gateway: RealtimeGateway, connection: ClientConnection, event: str, data) -> None:
    await gateway.handle_text(connection, json.dumps({"event": event, "data": data}))


async def test_ticket_message_is_broadcast_to_room_including_sender(gateway, users, ticket):
    visitor, visitor_socket = _connect(users["visitor"])
    agent, agent_socket = _connect(users["agent"])
    outsider, outsider_socket = _connect(users["other"])
    await _send(gateway, visitor, "join-ticket", {"ticketId": ticket.id})
    await _send(gateway, agent, "join-ticket", ticket.id)

    await _send(gateway, visitor, "ticket-message", {"ticketId": ticket.id, "content": "Still broken"})

    for socket in (visitor_socket, agent_socket):
        (event,) = socket.events("ticket-message")
        assert event["data"]["content"] == "Still broken"
        assert event["data"]["ticketId"] == ticket.id
        assert event["data"]["author"] == {"id": users["visitor"].id, "name": "Vera Visitor", "role": "visitor"}
    assert outsider_socket.sent == []
    assert gateway.hub.rooms_of(outsider) == set()


async def test_join_foreign_ticket_reports_error_to_sender_only(gateway, users, ticket):
    visitor, visitor_socket = _connect(users["visitor"])
    outsider, outsider_socket = _connect(users["other"])
    await _send(gateway, visitor, "join-ticket", {"ticketId": ticket.id})

    await _send(gateway, outsider, "join-ticket", {"ticketId": ticket.id})

    assert outsider_socket.events("error") == [
        {"event": "error", "data": {"message": "You don't have permission to access this ticket"}}
    ]
    assert visitor_socket.sent == []
    assert [member.id for member in gateway.hub.members(ticket_room(ticket.id))] == [visitor.id]


async def test_status_update_is_agent_only_and_broadcast(gateway, users, ticket, session_factory):
    visitor, visitor_socket = _connect(users["visitor"])
    agent, agent_socket = _connect(users["agent"])
    await _send(gateway, visitor, "join-ticket", {"ticketId": ticket.id})

    await _send(gateway, visitor, "update-ticket-status", {"ticketId": ticket.id, "status": "solved"})
    assert visitor_socket.events("error")[0]["data"]["message"] == "Only agents can change ticket status"
    assert visitor_socket.events("ticket-updated") == []

    await _send(gateway, agent, "update-ticket-status", {"ticketId": ticket.id, "status": "closed"})
    assert agent_socket.events("error")[0]["data"]["message"] == "Invalid payload"

    await _send(gateway, agent, "update-ticket-status", {"ticketId": ticket.id, "status": "pending"})
    (update,) = visitor_socket.events("ticket-updated")
    assert update["data"]["ticketId"] == ticket.id
    assert update["data"]["status"] == "pending"

    async with session_factory() as session:
        stored = await TicketRepository(session).get_by_id(ticket.id)
    assert stored.status.value == "pending"


async def test_visitor_reply_on_pending_ticket_announces_reopen(gateway, users, ticket):
    visitor, visitor_socket = _connect(users["visitor"])
    agent, _ = _connect(users["agent"])
    await _send(gateway, visitor, "join-ticket", {"ticketId": ticket.id})
    await _send(gateway, agent, "update-ticket-status", {"ticketId": ticket.id, "status": "pending"})

    await _send(gateway, visitor, "ticket-message", {"ticketId": ticket.id, "content": "Here is the photo"})

    statuses = [item["data"]["status"] for item in visitor_socket.events("ticket-updated")]
    assert statuses == ["pending", "open"]


async def test_ai_message_streams_chunks_and_leaves_room(gateway, users):
    visitor, socket = _connect(users["visitor"])

    await _send(gateway, visitor, "ai-message", {"message": "park hours", "sessionId": "chat-9"})

    assert socket.sent[0] == {"event": "ai-message-received", "data": {"sessionId": "chat-9"}}
    chunks = socket.events("ai-message-chunk")
    assert all(item["data"]["sessionId"] == "chat-9" for item in chunks)
    assert [item["data"]["done"] for item in chunks].count(True) == 1
    assert chunks[-1]["data"]["done"] is True
    assert "".join(item["data"]["content"] for item in chunks) == "Mock AI response: park hours"
    assert gateway.hub.rooms_of(visitor) == set()


async def test_bad_frames_report_errors_and_keep_connection(gateway, users):
    visitor, socket = _connect(users["visitor"])

    await gateway.handle_text(visitor, "not json")
    await _send(gateway, visitor, "dance", {})
    await _send(gateway, visitor, "ticket-message", {"ticketId": 404, "content": "hello"})
    await _send(gateway, visitor, "ticket-message", {"content": "no ticket"})

    messages = [item["data"]["message"] for item in socket.events("error")]
    assert messages == ["Malformed frame", "Unknown event: dance", "Ticket not found", "Invalid payload"]


async def test_disconnect_leaves_every_room(gateway, users, ticket):
    agent, _ = _connect(users["agent"])
    await _send(gateway, agent, "join-ticket", {"ticketId": ticket.id})

    gateway.disconnect(agent)

    assert gateway.hub.members(ticket_room(ticket.id)) == []


def test_handshake_without_identity_is_rejected():
    with TestClient(app) as client:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/api/ws"):
                pass
    assert exc_info.value.code == 1008


def test_handshake_with_invalid_token_is_rejected():
    bad_token = create_identity_token("auth0|x", ttl_seconds=-5)
    with TestClient(app) as client:
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(f"/api/ws?token={bad_token}"):
                pass
    assert exc_info.value.code == 1008
