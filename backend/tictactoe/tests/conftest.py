import pytest

from tictactoe.messaging.router import MessageRouter
from tictactoe.session.manager import SessionManager
from tictactoe.tests.mocks import MockConnection


@pytest.fixture
def manager():
    return SessionManager()


@pytest.fixture
def router(manager):
    return MessageRouter(manager)


@pytest.fixture
def connect(manager):
    """Factory: register a fresh MockConnection with the manager."""

    async def _connect(connection_id: str | None = None, **kwargs) -> MockConnection:
        conn = MockConnection(connection_id, **kwargs)
        await manager.connect(conn)
        return conn

    return _connect
