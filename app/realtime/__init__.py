from app.realtime.gateway import ClientConnection, RealtimeGateway
from app.realtime.hub import LocalBroker, RedisBroker, RoomHub

__all__ = ["ClientConnection", "LocalBroker", "RealtimeGateway", "RedisBroker", "RoomHub"]
