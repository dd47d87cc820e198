"""Process-wide registry of open rooms."""

from __future__ import annotations

import itertools
from typing import TYPE_CHECKING

import structlog

from tictactoe.session.room import Room

if TYPE_CHECKING:
    from tictactoe.session.types import RoomInfo

logger = structlog.get_logger()


class RoomRegistry:
    """Create, look up, delete and enumerate rooms.

    None of the methods yield to the event loop, so create/delete/list are
    atomic with respect to each other. Room ids are decimal strings allocated
    from a counter and never reused within the process lifetime.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, Room] = {}
        self._ids = itertools.count(1)

    def create_room(self) -> Room:
        room_id = str(next(self._ids))
        room = Room(room_id=room_id)
        self._rooms[room_id] = room
        logger.info("room created", room_id=room_id)
        return room

    def get(self, room_id: str) -> Room | None:
        return self._rooms.get(room_id)

    def delete(self, room_id: str) -> None:
        if self._rooms.pop(room_id, None) is not None:
            logger.info("room deleted", room_id=room_id)

    def list_rooms(self) -> list[RoomInfo]:
        """Return lobby info for every room, in creation order."""
        return [room.info() for room in self._rooms.values()]

    @property
    def room_count(self) -> int:
        return len(self._rooms)
