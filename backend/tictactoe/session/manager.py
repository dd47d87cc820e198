"""Session and room coordination: the only writer of Room and Session state."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from tictactoe.messaging.types import ResetMessage, RoleMessage, RoomFullMessage, StateMessage
from tictactoe.session.broadcast import Broadcaster
from tictactoe.session.registry import RoomRegistry
from tictactoe.session.room import MAX_PLAYERS
from tictactoe.session.session_store import SessionStore

if TYPE_CHECKING:
    from tictactoe.messaging.protocol import ConnectionProtocol
    from tictactoe.session.models import Session
    from tictactoe.session.room import Room

logger = structlog.get_logger()


def _state_message(room: Room) -> dict:
    return StateMessage(board=list(room.board), turn=room.turn, winner=room.winner).model_dump()


class SessionManager:
    """Bind connections to rooms and apply game actions.

    Every room mutation runs with the room's lock held for the whole
    validate -> mutate -> room broadcast sequence, so handling is
    linearizable per room. Lobby broadcasts run after the lock is released
    and render the registry as it is at send time.

    Rejected actions are silent: the client resyncs from the next
    `state` or `rooms` message it receives. The only exception is a join
    against a full room, which answers `room_full`.
    """

    def __init__(self, registry: RoomRegistry | None = None) -> None:
        self._registry = registry if registry is not None else RoomRegistry()
        self._sessions = SessionStore()
        self._broadcaster = Broadcaster(self._sessions, self._registry)

    @property
    def room_count(self) -> int:
        return self._registry.room_count

    @property
    def connection_count(self) -> int:
        return len(self._sessions)

    def get_session(self, connection_id: str) -> Session | None:
        return self._sessions.get_session(connection_id)

    def get_room(self, room_id: str) -> Room | None:
        return self._registry.get(room_id)

    # --- Connection lifecycle ---

    async def connect(self, connection: ConnectionProtocol) -> None:
        """Register a new connection and send it the lobby listing."""
        self._sessions.create_session(connection)
        await self._broadcaster.send_rooms(connection)

    async def disconnect(self, connection: ConnectionProtocol) -> None:
        """Tear down a closed connection. Same room effect as leave_room."""
        session = self._sessions.get_session(connection.connection_id)
        if session is None:
            return
        was_bound = await self._leave_current_room(session)
        self._sessions.remove_session(connection.connection_id)
        if was_bound:
            await self._broadcaster.broadcast_lobby()

    # --- Room membership ---

    async def create_room(self, connection: ConnectionProtocol) -> None:
        session = self._unbound_session(connection, "create_room")
        if session is None:
            return

        room = self._registry.create_room()
        async with room.lock:
            player = room.add_player(connection)
            session.bind(room.room_id, player.role)
            logger.info("player joined room", room_id=room.room_id, role=player.role, player_count=room.player_count)
            await self._broadcaster.send_to(connection, RoleMessage(role=player.role).model_dump())
            await self._broadcaster.send_to(connection, _state_message(room))

        await self._broadcaster.broadcast_lobby()

    async def join_room(self, connection: ConnectionProtocol, room_id: str) -> None:
        session = self._unbound_session(connection, "join_room")
        if session is None:
            return

        room = self._registry.get(room_id)
        if room is None:
            logger.debug("join dropped", reason="room_not_found", room_id=room_id)
            return

        async with room.lock:
            # The room may have drained and been deleted while we waited.
            if self._registry.get(room_id) is not room:
                logger.debug("join dropped", reason="room_not_found", room_id=room_id)
                return

            if room.is_full:
                logger.info("join rejected", reason="room_full", room_id=room_id)
                await self._broadcaster.send_to(connection, RoomFullMessage(id=room_id).model_dump())
                return

            player = room.add_player(connection)
            session.bind(room_id, player.role)
            logger.info("player joined room", room_id=room_id, role=player.role, player_count=room.player_count)
            await self._broadcaster.send_to(connection, RoleMessage(role=player.role).model_dump())
            await self._broadcaster.broadcast_room(room, _state_message(room))

        await self._broadcaster.broadcast_lobby()

    async def leave_room(self, connection: ConnectionProtocol) -> None:
        """Leave the current room. The leaver rejoins the lobby audience."""
        session = self._sessions.get_session(connection.connection_id)
        if session is None or not session.is_bound:
            logger.debug("leave dropped", reason="not_in_room")
            return
        await self._leave_current_room(session)
        # The leaver is unbound now, so this also delivers its fresh listing.
        await self._broadcaster.broadcast_lobby()

    # --- Game actions ---

    async def move(self, connection: ConnectionProtocol, index: int) -> None:
        session, room = self._bound_room(connection)
        if session is None or room is None:
            logger.debug("move dropped", reason="not_in_room")
            return

        async with room.lock:
            if self._registry.get(room.room_id) is not room or session.role is None:
                return
            if not room.apply_move(session.role, index):
                logger.debug("move dropped", reason="illegal", index=index, role=session.role, turn=room.turn)
                return
            logger.info("move accepted", room_id=room.room_id, role=session.role, index=index)
            await self._broadcaster.broadcast_room(room, _state_message(room))
            winner = room.winner

        if winner is not None:
            logger.info("game finished", room_id=room.room_id, winner=winner)
            await self._broadcaster.broadcast_lobby()

    async def restart(self, connection: ConnectionProtocol) -> None:
        session, room = self._bound_room(connection)
        if session is None or room is None:
            logger.debug("restart dropped", reason="not_in_room")
            return

        async with room.lock:
            if self._registry.get(room.room_id) is not room:
                return
            if room.player_count != MAX_PLAYERS:
                logger.debug("restart dropped", reason="waiting_for_opponent", room_id=room.room_id)
                return
            had_winner = room.winner is not None
            room.restart()
            logger.info("game restarted", room_id=room.room_id)
            await self._broadcaster.broadcast_room(room, _state_message(room))

        if had_winner:
            await self._broadcaster.broadcast_lobby()

    # --- Internal helpers ---

    def _unbound_session(self, connection: ConnectionProtocol, action: str) -> Session | None:
        """Return the connection's session if it may create or join a room."""
        session = self._sessions.get_session(connection.connection_id)
        if session is None:
            return None
        if session.is_bound:
            logger.debug("action dropped", action=action, reason="already_in_room", room_id=session.room_id)
            return None
        return session

    def _bound_room(self, connection: ConnectionProtocol) -> tuple[Session | None, Room | None]:
        session = self._sessions.get_session(connection.connection_id)
        if session is None or session.room_id is None:
            return None, None
        return session, self._registry.get(session.room_id)

    async def _leave_current_room(self, session: Session) -> bool:
        """Unseat the session and abort the room's game.

        Deletes the room when it drains, otherwise sends `reset` then the
        fresh `state` to whoever remains. Returns True if the session was bound.
        """
        room_id = session.room_id
        if room_id is None:
            return False

        room = self._registry.get(room_id)
        if room is None:
            session.clear()
            return True

        async with room.lock:
            room.remove_player(session.connection_id)
            role = session.role
            session.clear()
            room.reset()
            logger.info("player left room", room_id=room_id, role=role, player_count=room.player_count)

            if room.is_empty:
                self._registry.delete(room_id)
            else:
                await self._broadcaster.broadcast_room(room, ResetMessage().model_dump())
                await self._broadcaster.broadcast_room(room, _state_message(room))
        return True
