"""Abstract connection protocol for JSON text communication."""

from abc import ABC, abstractmethod


class ConnectionProtocol(ABC):
    """
    Abstract interface for a client connection.

    This abstraction allows message handling logic to be tested
    without real WebSocket connections. Uses JSON text frames.
    """

    @property
    @abstractmethod
    def connection_id(self) -> str:
        """Unique identifier for this connection."""
        ...

    @abstractmethod
    async def send_text(self, data: str) -> None:
        """
        Send one text frame to the client.

        Implementations must not block on the peer: delivery is fire-and-forget.
        Raise ConnectionError when the frame cannot be accepted for delivery.
        """
        ...

    @abstractmethod
    async def receive_text(self) -> str:
        """
        Receive one text frame from the client.
        """
        ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None:
        """
        Close the connection.
        """
        ...
