from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tictactoe.logic.enums import Role
    from tictactoe.messaging.protocol import ConnectionProtocol


@dataclass
class Session:
    """Per-connection binding to at most one room and one role.

    Lifecycle:
    - Created when the connection is accepted, unbound
    - bind() on create_room / join_room
    - clear() on leave_room or disconnect
    - Removed from the store when the transport closes
    """

    connection: ConnectionProtocol
    room_id: str | None = None
    role: Role | None = None

    @property
    def connection_id(self) -> str:
        return self.connection.connection_id

    @property
    def is_bound(self) -> bool:
        return self.room_id is not None

    def bind(self, room_id: str, role: Role) -> None:
        self.room_id = room_id
        self.role = role

    def clear(self) -> None:
        self.room_id = None
        self.role = None
