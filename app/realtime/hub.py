from __future__ import annotations

import asyncio
import json
import logging
from collections import defaultdict
from typing import Any, Protocol

from fastapi.encoders import jsonable_encoder
from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


def ticket_room(ticket_id: int) -> str:
    return f"ticket:{ticket_id}"


def chat_room(session_id: str) -> str:
    return f"chat:{session_id}"


def frame(event: str, data: Any) -> dict[str, Any]:
    return {"event": event, "data": jsonable_encoder(data)}


class Subscriber(Protocol):
    id: str

    async def send_json(self, data: Any) -> None: ...


class Broker(Protocol):
    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    async def publish(self, room: str, event: str, data: Any) -> None: ...


class RoomHub:
    """Room membership for connections owned by this process."""

    def __init__(self) -> None:
        self._rooms: dict[str, dict[str, Subscriber]] = defaultdict(dict)

    def join(self, subscriber: Subscriber, room: str) -> None:
        self._rooms[room][subscriber.id] = subscriber

    def leave(self, subscriber: Subscriber, room: str) -> None:
        members = self._rooms.get(room)
        if members is None:
            return
        members.pop(subscriber.id, None)
        if not members:
            self._rooms.pop(room, None)

    def leave_all(self, subscriber: Subscriber) -> None:
        for room in [name for name, members in self._rooms.items() if subscriber.id in members]:
            self.leave(subscriber, room)

    def members(self, room: str) -> list[Subscriber]:
        return list(self._rooms.get(room, {}).values())

    def rooms_of(self, subscriber: Subscriber) -> set[str]:
        return {name for name, members in self._rooms.items() if subscriber.id in members}

    async def deliver(self, room: str, message: dict[str, Any]) -> None:
        for member in self.members(room):
            try:
                await member.send_json(message)
            except Exception:
                logger.warning("Dropping subscriber %s from %s after failed send", member.id, room)
                self.leave(member, room)


class LocalBroker:
    """Fan-out within a single process."""

    def __init__(self, hub: RoomHub) -> None:
        self.hub = hub

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None

    async def publish(self, room: str, event: str, data: Any) -> None:
        await self.hub.deliver(room, frame(event, data))


class RedisBroker:
    """Fan-out through Redis pub/sub so every server process sees every room."""

    def __init__(self, hub: RoomHub, redis: Redis, channel: str) -> None:
        self.hub = hub
        self.redis = redis
        self.channel = channel
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._task is None:
            pubsub = self.redis.pubsub()
            await pubsub.subscribe(self.channel)
            self._task = asyncio.create_task(self._listen(pubsub), name="realtime-redis-listener")

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def publish(self, room: str, event: str, data: Any) -> None:
        payload = {"room": room, "message": frame(event, data)}
        await self.redis.publish(self.channel, json.dumps(payload, ensure_ascii=False))

    async def _listen(self, pubsub) -> None:
        try:
            while True:
                item = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                if item is None:
                    continue
                try:
                    payload = json.loads(item["data"])
                    await self.hub.deliver(payload["room"], payload["message"])
                except (json.JSONDecodeError, KeyError, TypeError):
                    logger.warning("Ignoring malformed realtime payload on %s", self.channel)
        except RedisError:
            logger.exception("Realtime listener lost its Redis connection")
        finally:
            await pubsub.unsubscribe(self.channel)
            await pubsub.aclose()
