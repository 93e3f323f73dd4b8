from __future__ import annotations

import json
import uuid
from typing import Any, Awaitable, Callable

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import AppError, DependencyError
from app.core.logging import get_event_logger
from app.models import User
from app.realtime.hub import Broker, RoomHub, chat_room, frame, ticket_room
from app.schemas.realtime import AIMessageEvent, ClientFrame, TicketMessageEvent, TicketRoomEvent, TicketStatusEvent
from app.schemas.ticket import TicketRead
from app.services import policy
from app.services.ai.providers import AIProvider
from app.services.assist import AssistService
from app.services.tickets import TicketService

logger = get_event_logger(__name__)

GENERIC_ERROR = "Internal server error"


class ClientConnection:
    """One authenticated socket, addressed by a random id inside the hub."""

    def __init__(self, socket: Any, user: User) -> None:
        self.id = uuid.uuid4().hex
        self.socket = socket
        self.user = user

    async def send_json(self, data: Any) -> None:
        await self.socket.send_json(data)

    async def emit(self, event: str, data: Any) -> None:
        await self.send_json(frame(event, data))


class RealtimeGateway:
    def __init__(
        self,
        hub: RoomHub,
        broker: Broker,
        session_factory: async_sessionmaker[AsyncSession],
        provider: AIProvider,
    ) -> None:
        self.hub = hub
        self.broker = broker
        self.session_factory = session_factory
        self.provider = provider
        self._handlers: dict[str, Callable[[ClientConnection, Any], Awaitable[None]]] = {
            "join-ticket": self.join_ticket,
            "leave-ticket": self.leave_ticket,
            "ticket-message": self.ticket_message,
            "update-ticket-status": self.update_ticket_status,
            "ai-message": self.ai_message,
        }

    async def handle_text(self, connection: ClientConnection, raw: str) -> None:
        try:
            incoming = ClientFrame.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError):
            await connection.emit("error", {"message": "Malformed frame"})
            return
        await self.dispatch(connection, incoming.event, incoming.data)

    async def dispatch(self, connection: ClientConnection, event: str, data: Any) -> None:
        handler = self._handlers.get(event)
        if handler is None:
            await connection.emit("error", {"message": f"Unknown event: {event}"})
            return
        log = logger.bind(event=event, user_id=connection.user.id, connection_id=connection.id)
        try:
            await handler(connection, data)
        except ValidationError as exc:
            log.info("realtime_invalid_payload", errors=exc.error_count())
            await connection.emit("error", {"message": "Invalid payload"})
        except DependencyError:
            log.exception("realtime_dependency_failed")
            await connection.emit("error", {"message": GENERIC_ERROR})
        except AppError as exc:
            log.info("realtime_rejected", code=exc.code)
            await connection.emit("error", {"message": exc.message})
        except Exception:
            log.exception("realtime_handler_failed")
            await connection.emit("error", {"message": GENERIC_ERROR})

    def disconnect(self, connection: ClientConnection) -> None:
        self.hub.leave_all(connection)

    @staticmethod
    def _room_event(data: Any) -> TicketRoomEvent:
        # Clients may send the bare ticket id instead of an object.
        if isinstance(data, (int, str)):
            return TicketRoomEvent(ticket_id=data)
        return TicketRoomEvent.model_validate(data)

    async def join_ticket(self, connection: ClientConnection, data: Any) -> None:
        payload = self._room_event(data)
        async with self.session_factory() as session:
            await TicketService(session).get_for_read(connection.user, payload.ticket_id)
        self.hub.join(connection, ticket_room(payload.ticket_id))

    async def leave_ticket(self, connection: ClientConnection, data: Any) -> None:
        payload = self._room_event(data)
        self.hub.leave(connection, ticket_room(payload.ticket_id))

    async def ticket_message(self, connection: ClientConnection, data: Any) -> None:
        payload = TicketMessageEvent.model_validate(data)
        async with self.session_factory() as session:
            service = TicketService(session)
            previous_status = (await service.get_for_read(connection.user, payload.ticket_id)).status
            ticket, message = await service.post_message(
                connection.user,
                payload.ticket_id,
                payload.content,
                is_from_ai=payload.is_from_ai,
            )
            (enriched,) = await service.enrich_messages([message])
        room = ticket_room(payload.ticket_id)
        await self.broker.publish(room, "ticket-message", enriched.model_dump(mode="json", by_alias=True))
        if ticket.status != previous_status:
            await self.broker.publish(room, "ticket-updated", {"ticketId": ticket.id, "status": ticket.status.value})

    async def update_ticket_status(self, connection: ClientConnection, data: Any) -> None:
        payload = TicketStatusEvent.model_validate(data)
        policy.ensure(policy.can_mutate_status(connection.user), "Only agents can change ticket status")
        async with self.session_factory() as session:
            ticket = await TicketService(session).set_status(connection.user, payload.ticket_id, payload.status)
            updated = TicketRead.model_validate(ticket)
        await self.broker.publish(
            ticket_room(payload.ticket_id),
            "ticket-updated",
            {"ticketId": updated.id, "status": updated.status.value, "updatedAt": updated.updated_at},
        )

    async def ai_message(self, connection: ClientConnection, data: Any) -> None:
        payload = AIMessageEvent.model_validate(data)
        session_id = payload.session_id or uuid.uuid4().hex
        room = chat_room(session_id)
        await connection.emit("ai-message-received", {"sessionId": session_id})
        self.hub.join(connection, room)
        try:
            async with self.session_factory() as session:
                service = AssistService(session, self.provider)
                async for chunk in service.stream(payload.message, session_id=session_id, user=connection.user):
                    await connection.emit(
                        "ai-message-chunk",
                        {"content": chunk.text, "done": chunk.done, "sessionId": session_id},
                    )
        finally:
            self.hub.leave(connection, room)
