"""Room model: one isolated match with its own board and up to two players."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tictactoe.logic.enums import Outcome, Role
from tictactoe.logic.rules import BOARD_SIZE, empty_board, evaluate
from tictactoe.session.types import RoomInfo

if TYPE_CHECKING:
    from tictactoe.messaging.protocol import ConnectionProtocol

MAX_PLAYERS = 2


@dataclass
class RoomPlayer:
    """A connection seated in a room under a role."""

    connection: ConnectionProtocol
    role: Role

    @property
    def connection_id(self) -> str:
        return self.connection.connection_id


@dataclass
class Room:
    """Authoritative game state for one match.

    Fields are only mutated while `lock` is held. Once `winner` is set the
    board and turn stay frozen until reset() or restart().
    """

    room_id: str
    players: list[RoomPlayer] = field(default_factory=list)
    board: list[Role | None] = field(default_factory=empty_board)
    turn: Role | None = None
    winner: Outcome | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def is_empty(self) -> bool:
        return self.player_count == 0

    @property
    def is_full(self) -> bool:
        return self.player_count >= MAX_PLAYERS

    def open_role(self) -> Role | None:
        """Return the role a new player would take: X first, then O. None when full."""
        if self.is_full:
            return None
        taken = {p.role for p in self.players}
        if Role.X not in taken:
            return Role.X
        if Role.O not in taken:
            return Role.O
        return None  # pragma: no cover

    def player_for(self, connection_id: str) -> RoomPlayer | None:
        for player in self.players:
            if player.connection_id == connection_id:
                return player
        return None

    def add_player(self, connection: ConnectionProtocol) -> RoomPlayer:
        """Seat a connection in the first open role.

        When this fills the room and no turn is set yet, X moves first.
        """
        role = self.open_role()
        if role is None:
            raise ValueError(f"room {self.room_id} is full")
        player = RoomPlayer(connection=connection, role=role)
        self.players.append(player)
        if self.is_full and self.turn is None:
            self.turn = Role.X
        return player

    def remove_player(self, connection_id: str) -> RoomPlayer | None:
        player = self.player_for(connection_id)
        if player is not None:
            self.players.remove(player)
        return player

    def reset(self) -> None:
        """Abort the current game: empty board, no turn, no winner."""
        self.board = empty_board()
        self.turn = None
        self.winner = None

    def restart(self) -> None:
        """Start a fresh game with X to move."""
        self.reset()
        self.turn = Role.X

    def can_move(self, role: Role, index: int) -> bool:
        return (
            self.winner is None
            and 0 <= index < BOARD_SIZE
            and self.board[index] is None
            and self.turn is not None
            and role == self.turn
        )

    def apply_move(self, role: Role, index: int) -> bool:
        """Place `role` at `index` if the move is legal.

        Returns False (and changes nothing) for an illegal move. An accepted
        move either sets the winner or passes the turn to the opponent.
        """
        if not self.can_move(role, index):
            return False
        self.board[index] = role
        self.winner = evaluate(self.board)
        if self.winner is None:
            self.turn = role.opponent
        return True

    def info(self) -> RoomInfo:
        return RoomInfo(id=self.room_id, players=self.player_count, winner=self.winner)
