from __future__ import annotations

from typing import TYPE_CHECKING

from tictactoe.session.models import Session

if TYPE_CHECKING:
    from tictactoe.messaging.protocol import ConnectionProtocol


class SessionStore:
    """In-memory store of live sessions.

    Map connection ids to Session records. A session exists exactly as long
    as its connection: created on accept, removed on close.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}  # connection_id -> Session

    def __len__(self) -> int:
        return len(self._sessions)

    def create_session(self, connection: ConnectionProtocol) -> Session:
        """Create an unbound session for a newly accepted connection."""
        if connection.connection_id in self._sessions:
            raise ValueError(f"session already exists for {connection.connection_id}")
        session = Session(connection=connection)
        self._sessions[connection.connection_id] = session
        return session

    def get_session(self, connection_id: str) -> Session | None:
        return self._sessions.get(connection_id)

    def remove_session(self, connection_id: str) -> Session | None:
        return self._sessions.pop(connection_id, None)

    def lobby_connections(self) -> list[ConnectionProtocol]:
        """Connections not bound to any room, snapshotted for broadcasting."""
        return [s.connection for s in self._sessions.values() if not s.is_bound]
