"""Integration tests for WebSocket and HTTP endpoints.

These drive the Starlette app through the test client: JSON frames in,
JSON frames out, with the real outbox writer between the session layer
and the socket.
"""

import pytest
from starlette.testclient import TestClient

from tictactoe.server.app import create_app
from tictactoe.server.settings import GameServerSettings
from tictactoe.session.manager import SessionManager
from tictactoe.tests.helpers.websocket import create_room, recv_until

_EMPTY_BOARD = [None] * 9


@pytest.fixture
def session_manager():
    return SessionManager()


@pytest.fixture
def client(tmp_path, session_manager):
    settings = GameServerSettings(static_dir=str(tmp_path / "missing"))
    app = create_app(settings=settings, session_manager=session_manager)
    with TestClient(app) as client:
        yield client


def _play(ws_x, ws_o, indexes: list[int]) -> dict:
    """Alternate moves starting with X; return the last state both sides saw."""
    state = {}
    for turn, index in enumerate(indexes):
        mover = ws_x if turn % 2 == 0 else ws_o
        mover.send_json({"type": "move", "index": index})
        state = ws_x.receive_json()
        assert ws_o.receive_json() == state
    return state


class TestLobby:
    def test_connect_receives_room_listing(self, client):
        with client.websocket_connect("/ws") as ws:
            assert ws.receive_json() == {"type": "rooms", "rooms": []}

    def test_create_room_assigns_x_and_updates_lobby(self, client):
        with client.websocket_connect("/ws") as ws, client.websocket_connect("/ws") as watcher:
            ws.receive_json()
            watcher.receive_json()

            role, state = create_room(ws)

            assert role == "X"
            assert state == {"type": "state", "board": _EMPTY_BOARD, "turn": None, "winner": None}
            assert recv_until(watcher, "rooms") == {
                "type": "rooms",
                "rooms": [{"id": "1", "players": 1, "winner": None}],
            }

    def test_join_full_room_rejected(self, client):
        with (
            client.websocket_connect("/ws") as ws_x,
            client.websocket_connect("/ws") as ws_o,
            client.websocket_connect("/ws") as late,
        ):
            for ws in (ws_x, ws_o, late):
                ws.receive_json()
            create_room(ws_x)
            ws_o.send_json({"type": "join_room", "id": "1"})
            recv_until(ws_o, "state")

            late.send_json({"type": "join_room", "id": 1})

            assert recv_until(late, "room_full") == {"type": "room_full", "id": "1"}


class TestGameFlow:
    def test_full_game_to_win(self, client):
        with client.websocket_connect("/ws") as ws_x, client.websocket_connect("/ws") as ws_o:
            ws_x.receive_json()
            ws_o.receive_json()
            create_room(ws_x)

            ws_o.send_json({"type": "join_room", "id": "1"})
            assert recv_until(ws_o, "role") == {"type": "role", "role": "O"}
            joined = recv_until(ws_o, "state")
            assert recv_until(ws_x, "state") == joined
            assert joined["turn"] == "X"

            final = _play(ws_x, ws_o, [0, 3, 1, 4, 2])

            assert final["winner"] == "X"
            assert final["board"][:3] == ["X", "X", "X"]

    def test_moves_after_win_are_ignored_until_restart(self, client):
        with client.websocket_connect("/ws") as ws_x, client.websocket_connect("/ws") as ws_o:
            ws_x.receive_json()
            ws_o.receive_json()
            create_room(ws_x)
            ws_o.send_json({"type": "join_room", "id": "1"})
            recv_until(ws_o, "state")
            recv_until(ws_x, "state")
            _play(ws_x, ws_o, [0, 3, 1, 4, 2])

            ws_o.send_json({"type": "move", "index": 8})
            ws_o.send_json({"type": "restart"})

            expected = {"type": "state", "board": _EMPTY_BOARD, "turn": "X", "winner": None}
            assert ws_x.receive_json() == expected
            assert ws_o.receive_json() == expected

    def test_out_of_turn_move_is_ignored(self, client):
        with client.websocket_connect("/ws") as ws_x, client.websocket_connect("/ws") as ws_o:
            ws_x.receive_json()
            ws_o.receive_json()
            create_room(ws_x)
            ws_o.send_json({"type": "join_room", "id": "1"})
            recv_until(ws_o, "state")
            recv_until(ws_x, "state")

            ws_o.send_json({"type": "move", "index": 4})
            ws_x.send_json({"type": "move", "index": 0})

            state = ws_o.receive_json()
            assert state["board"][4] is None
            assert state["board"][0] == "X"

    def test_partner_disconnect_resets_room(self, client, session_manager):
        with client.websocket_connect("/ws") as ws_x:
            ws_x.receive_json()
            create_room(ws_x)
            with client.websocket_connect("/ws") as ws_o:
                ws_o.receive_json()
                ws_o.send_json({"type": "join_room", "id": "1"})
                recv_until(ws_o, "state")
                recv_until(ws_x, "state")
                ws_x.send_json({"type": "move", "index": 4})
                recv_until(ws_x, "state")

            assert ws_x.receive_json() == {"type": "reset"}
            assert ws_x.receive_json() == {"type": "state", "board": _EMPTY_BOARD, "turn": None, "winner": None}
            room = session_manager.get_room("1")
            assert room is not None
            assert room.player_count == 1

    def test_last_player_leaving_deletes_room(self, client, session_manager):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            create_room(ws)

            ws.send_json({"type": "leave_room"})

            assert recv_until(ws, "rooms") == {"type": "rooms", "rooms": []}
            assert session_manager.room_count == 0


class TestMalformedInput:
    @pytest.mark.parametrize(
        "frame",
        [
            "not json at all",
            "[1, 2, 3]",
            '{"type": "teleport"}',
            '{"type": "move", "index": 99}',
            '{"type": "create_room", "pad": "' + "x" * 5000 + '"}',
        ],
    )
    def test_bad_frame_dropped_and_connection_survives(self, client, frame):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()

            ws.send_text(frame)
            ws.send_json({"type": "create_room"})

            assert ws.receive_json() == {"type": "role", "role": "X"}

    def test_binary_json_frame_accepted(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()

            ws.send_bytes(b'{"type":"create_room"}')

            assert ws.receive_json() == {"type": "role", "role": "X"}

    def test_invalid_utf8_binary_frame_dropped(self, client, session_manager):
        with client.websocket_connect("/ws") as host, client.websocket_connect("/ws") as ws:
            host.receive_json()
            ws.receive_json()
            create_room(host)

            ws.send_bytes(b'{"type":"create_room","pad":"\xff"}')
            # Seated players ignore join_room, so a role here proves the frame above was dropped.
            ws.send_json({"type": "join_room", "id": "1"})

            assert recv_until(ws, "role") == {"type": "role", "role": "O"}
            assert session_manager.room_count == 1


class TestHttpEndpoints:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_status_counts_rooms_and_connections(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            create_room(ws)

            body = client.get("/status").json()

        assert body["rooms"] == 1
        assert body["connections"] == 1
        assert {"version", "commit"} <= body.keys()

    def test_no_static_mount_when_directory_missing(self, client):
        assert client.get("/").status_code == 404

    def test_serves_static_client(self, tmp_path):
        (tmp_path / "index.html").write_text("<h1>tic-tac-toe</h1>")
        app = create_app(settings=GameServerSettings(static_dir=str(tmp_path)))
        with TestClient(app) as client:
            response = client.get("/")
            assert response.status_code == 200
            assert "tic-tac-toe" in response.text
            assert client.get("/health").json()["status"] == "ok"

    def test_cors_headers_when_configured(self, tmp_path):
        settings = GameServerSettings(static_dir=str(tmp_path), cors_origins=["http://a.com"])
        with TestClient(create_app(settings=settings)) as client:
            response = client.get("/health", headers={"Origin": "http://a.com"})
        assert response.headers["access-control-allow-origin"] == "http://a.com"

    def test_apps_do_not_share_rooms(self, tmp_path):
        settings = GameServerSettings(static_dir=str(tmp_path / "missing"))
        first = create_app(settings=settings)
        second = create_app(settings=settings)
        with TestClient(first) as client, client.websocket_connect("/ws") as ws:
            ws.receive_json()
            create_room(ws)
        assert first.state.session_manager is not second.state.session_manager
        assert second.state.session_manager.room_count == 0
