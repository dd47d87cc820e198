"""Best-effort fan-out of server messages to lobby and room audiences."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from tictactoe.messaging.encoder import encode
from tictactoe.messaging.types import RoomsMessage

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tictactoe.messaging.protocol import ConnectionProtocol
    from tictactoe.session.registry import RoomRegistry
    from tictactoe.session.room import Room
    from tictactoe.session.session_store import SessionStore

logger = structlog.get_logger()


async def send_best_effort(connection: ConnectionProtocol, payload: str) -> bool:
    """Send an encoded frame, swallowing transport failures. Returns True on success."""
    try:
        await connection.send_text(payload)
    except (ConnectionError, RuntimeError, OSError) as e:
        logger.debug("send failed", recipient=connection.connection_id, error=str(e))
        return False
    return True


async def broadcast_to_connections(connections: Iterable[ConnectionProtocol], message: dict[str, Any]) -> int:
    """Send one message to every connection. Returns the number of successful sends.

    The message is encoded once. A failed send to one recipient does not
    stop delivery to the others.
    """
    payload = encode(message)
    delivered = 0
    for connection in list(connections):
        if await send_best_effort(connection, payload):
            delivered += 1
    return delivered


class Broadcaster:
    """Deliver messages to exactly the right audience.

    The lobby audience is every session not bound to a room; the room
    audience is the players currently seated in one room. A connection
    belongs to at most one of them at any instant.
    """

    def __init__(self, sessions: SessionStore, registry: RoomRegistry) -> None:
        self._sessions = sessions
        self._registry = registry

    def rooms_message(self) -> dict[str, Any]:
        return RoomsMessage(rooms=self._registry.list_rooms()).model_dump()

    async def send_to(self, connection: ConnectionProtocol, message: dict[str, Any]) -> bool:
        return await send_best_effort(connection, encode(message))

    async def send_rooms(self, connection: ConnectionProtocol) -> bool:
        """Send the current lobby listing to a single connection."""
        return await self.send_to(connection, self.rooms_message())

    async def broadcast_lobby(self) -> None:
        """Send the current lobby listing to every unbound connection."""
        await broadcast_to_connections(self._sessions.lobby_connections(), self.rooms_message())

    async def broadcast_room(self, room: Room, message: dict[str, Any]) -> None:
        """Send a message to every player seated in `room`."""
        await broadcast_to_connections((p.connection for p in room.players), message)
