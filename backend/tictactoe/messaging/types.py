from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from tictactoe.logic.enums import Outcome, Role
from tictactoe.logic.rules import BOARD_SIZE
from tictactoe.session.types import RoomInfo


class ClientMessageType(StrEnum):
    CREATE_ROOM = "create_room"
    JOIN_ROOM = "join_room"
    LEAVE_ROOM = "leave_room"
    MOVE = "move"
    RESTART = "restart"


class ServerMessageType(StrEnum):
    ROOMS = "rooms"
    ROLE = "role"
    STATE = "state"
    RESET = "reset"
    ROOM_FULL = "room_full"


class CreateRoomMessage(BaseModel):
    type: Literal[ClientMessageType.CREATE_ROOM] = ClientMessageType.CREATE_ROOM


class JoinRoomMessage(BaseModel):
    type: Literal[ClientMessageType.JOIN_ROOM] = ClientMessageType.JOIN_ROOM
    id: str = Field(min_length=1, max_length=50)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_numeric_id(cls, v: object) -> object:
        """Room ids are listed as strings, but clients may echo them back as numbers."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class LeaveRoomMessage(BaseModel):
    type: Literal[ClientMessageType.LEAVE_ROOM] = ClientMessageType.LEAVE_ROOM


class MoveMessage(BaseModel):
    type: Literal[ClientMessageType.MOVE] = ClientMessageType.MOVE
    index: int = Field(strict=True, ge=0, lt=BOARD_SIZE)


class RestartMessage(BaseModel):
    type: Literal[ClientMessageType.RESTART] = ClientMessageType.RESTART


ClientMessage = Annotated[
    CreateRoomMessage | JoinRoomMessage | LeaveRoomMessage | MoveMessage | RestartMessage,
    Field(discriminator="type"),
]


class RoomsMessage(BaseModel):
    type: Literal[ServerMessageType.ROOMS] = ServerMessageType.ROOMS
    rooms: list[RoomInfo]


class RoleMessage(BaseModel):
    type: Literal[ServerMessageType.ROLE] = ServerMessageType.ROLE
    role: Role


class StateMessage(BaseModel):
    """Authoritative snapshot of one room's game, sent to every member."""

    type: Literal[ServerMessageType.STATE] = ServerMessageType.STATE
    board: list[Role | None] = Field(min_length=BOARD_SIZE, max_length=BOARD_SIZE)
    turn: Role | None
    winner: Outcome | None


class ResetMessage(BaseModel):
    type: Literal[ServerMessageType.RESET] = ServerMessageType.RESET


class RoomFullMessage(BaseModel):
    type: Literal[ServerMessageType.ROOM_FULL] = ServerMessageType.ROOM_FULL
    id: str


_client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


def parse_client_message(
    data: dict[str, Any],
) -> CreateRoomMessage | JoinRoomMessage | LeaveRoomMessage | MoveMessage | RestartMessage:
    """Parse a raw dict into a typed client message.

    Raises pydantic.ValidationError for an unknown type or malformed fields.
    """
    return _client_message_adapter.validate_python(data)
