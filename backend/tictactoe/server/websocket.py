from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from tictactoe.messaging.encoder import MAX_MESSAGE_SIZE, DecodeError, decode
from tictactoe.messaging.protocol import ConnectionProtocol

logger = structlog.get_logger()

if TYPE_CHECKING:
    from tictactoe.messaging.router import MessageRouter

_DEFAULT_OUTBOX_SIZE = 256


class WebSocketConnection(ConnectionProtocol):
    """ConnectionProtocol over a Starlette WebSocket.

    Outbound frames go through a bounded queue drained by a writer task,
    so send_text never waits on the peer.
    """

    def __init__(
        self,
        websocket: WebSocket,
        connection_id: str | None = None,
        outbox_size: int = _DEFAULT_OUTBOX_SIZE,
    ) -> None:
        self._websocket = websocket
        self._connection_id = connection_id or str(uuid4())
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=outbox_size)
        self._writer_task: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def connection_id(self) -> str:
        return self._connection_id

    def start_writer(self) -> None:
        """Start draining the outbox. Idempotent."""
        if self._writer_task is None:
            self._writer_task = asyncio.create_task(self._drain_outbox())

    async def stop_writer(self) -> None:
        self._closed = True
        if self._writer_task is not None:
            self._writer_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._writer_task
            self._writer_task = None

    async def _drain_outbox(self) -> None:
        while True:
            data = await self._outbox.get()
            try:
                await self._websocket.send_text(data)
            except (WebSocketDisconnect, RuntimeError, OSError) as e:  # fmt: skip
                logger.debug("outbound write failed", connection_id=self._connection_id, error=str(e))
                self._closed = True
                return

    async def send_text(self, data: str) -> None:
        if self._closed:
            raise ConnectionError("WebSocket already closed")
        try:
            self._outbox.put_nowait(data)
        except asyncio.QueueFull:
            raise ConnectionError("outbound queue full") from None

    async def receive_text(self) -> str:
        message = await self._websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise ConnectionError("WebSocket disconnected")
        text = message.get("text")
        if text is None:
            # Binary frames are accepted if they carry UTF-8 JSON.
            try:
                text = (message.get("bytes") or b"").decode("utf-8")
            except UnicodeDecodeError as e:
                raise DecodeError(f"binary frame is not valid UTF-8: {e}") from e
        return text

    async def close(self, code: int = 1000, reason: str = "") -> None:
        await self.stop_writer()
        with contextlib.suppress(WebSocketDisconnect, RuntimeError):
            await self._websocket.close(code=code, reason=reason)


async def websocket_endpoint(
    websocket: WebSocket,
    router: MessageRouter,
    *,
    max_message_size: int = MAX_MESSAGE_SIZE,
    outbox_size: int = _DEFAULT_OUTBOX_SIZE,
) -> None:
    await websocket.accept()

    connection = WebSocketConnection(websocket, outbox_size=outbox_size)
    connection.start_writer()
    structlog.contextvars.bind_contextvars(connection_id=connection.connection_id)
    logger.info("websocket connected")

    try:
        await router.handle_connect(connection)
        while True:
            try:
                data = decode(await connection.receive_text(), max_size=max_message_size)
            except DecodeError as e:
                logger.debug("dropped undecodable frame", error=str(e))
                continue
            await router.handle_message(connection, data)
    except (WebSocketDisconnect, RuntimeError, ConnectionError):  # fmt: skip
        pass
    except Exception:
        logger.exception("unexpected error in websocket loop")
    finally:
        logger.info("websocket disconnected")
        await router.handle_disconnect(connection)
        await connection.stop_writer()
        structlog.contextvars.clear_contextvars()
