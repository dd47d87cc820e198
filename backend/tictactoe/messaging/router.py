from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from tictactoe.messaging.types import (
    CreateRoomMessage,
    JoinRoomMessage,
    LeaveRoomMessage,
    MoveMessage,
    RestartMessage,
    parse_client_message,
)

if TYPE_CHECKING:
    from tictactoe.messaging.protocol import ConnectionProtocol
    from tictactoe.session.manager import SessionManager

logger = structlog.get_logger()


class MessageRouter:
    """
    Routes incoming messages to appropriate handlers.

    This class contains pure business logic and can be tested
    without real WebSocket connections. Messages that fail validation
    are dropped without a reply.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except ValidationError as e:
            logger.debug(
                "dropped invalid message",
                message_type=raw_message.get("type"),
                errors=e.error_count(),
            )
            return

        if isinstance(message, CreateRoomMessage):
            await self._session_manager.create_room(connection)
        elif isinstance(message, JoinRoomMessage):
            await self._session_manager.join_room(connection, message.id)
        elif isinstance(message, LeaveRoomMessage):
            await self._session_manager.leave_room(connection)
        elif isinstance(message, MoveMessage):
            await self._session_manager.move(connection, message.index)
        elif isinstance(message, RestartMessage):
            await self._session_manager.restart(connection)

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.connect(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.disconnect(connection)
