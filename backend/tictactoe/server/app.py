from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route, WebSocketRoute
from starlette.staticfiles import StaticFiles

from shared.build_info import APP_VERSION, GIT_COMMIT
from shared.logging import setup_logging
from tictactoe.messaging.router import MessageRouter
from tictactoe.server.settings import GameServerSettings
from tictactoe.server.websocket import websocket_endpoint
from tictactoe.session.manager import SessionManager

logger = structlog.get_logger()

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.websockets import WebSocket


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok", "version": APP_VERSION, "commit": GIT_COMMIT})


async def status(request: Request) -> JSONResponse:
    session_manager: SessionManager = request.app.state.session_manager
    return JSONResponse(
        {
            "status": "ok",
            "version": APP_VERSION,
            "commit": GIT_COMMIT,
            "rooms": session_manager.room_count,
            "connections": session_manager.connection_count,
        },
    )


def create_app(
    settings: GameServerSettings | None = None,
    session_manager: SessionManager | None = None,
    message_router: MessageRouter | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = GameServerSettings()

    # One registry-owning manager per app; no module-level room state.
    if session_manager is None:
        session_manager = SessionManager()

    if message_router is None:
        message_router = MessageRouter(session_manager)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(
            websocket,
            message_router,
            max_message_size=settings.max_message_size,
            outbox_size=settings.outbox_size,
        )

    routes: list[Route | WebSocketRoute | Mount] = [
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        WebSocketRoute("/ws", ws_endpoint),
    ]

    static_dir = Path(settings.static_dir).resolve()
    if static_dir.is_dir():
        # Mounted last so the routes above take precedence.
        routes.append(Mount("/", app=StaticFiles(directory=str(static_dir), html=True), name="static"))
    else:
        logger.warning("static directory not found, browser client will not be served", path=str(static_dir))

    app = Starlette(routes=routes)
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,  # type: ignore[arg-type]
            allow_origins=settings.cors_origins,
            allow_methods=["GET"],
            allow_headers=["Content-Type"],
        )
    app.state.settings = settings
    app.state.session_manager = session_manager

    logger.info("game server ready")
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    settings = GameServerSettings()
    setup_logging(log_dir=settings.log_dir)
    return create_app(settings=settings)


def main() -> None:  # pragma: no cover
    """Console entry point: serve the app on the configured host and port."""
    settings = GameServerSettings()
    setup_logging(log_dir=settings.log_dir)
    app = create_app(settings=settings)
    logger.info("server listening", url=f"http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
