"""Tests for QtNetworkTransport against a local HTTP server."""

import json
import socket
import threading
import time
from collections.abc import Generator
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any

import pytest
from conftest import TICKET
from pytestqt.qtbot import QtBot

from udjclient.api.client import ServerConnection
from udjclient.api.endpoints import MISSING_RESOURCE_HEADER, TICKET_HEADER
from udjclient.api.protocol import ApiRequest
from udjclient.api.transport import QtNetworkTransport
from udjclient.models.outcome import Authenticated, ErrorKind, Operation, VolumeSet

API_PATH = "/udj/0_6/"


class _Handler(BaseHTTPRequestHandler):
    """Minimal UDJ server stand-in."""

    seen: list[dict[str, Any]] = []

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        pass

    def _record(self) -> None:
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        self.seen.append(
            {
                "method": self.command,
                "path": self.path,
                "ticket": self.headers.get(TICKET_HEADER),
                "body": json.loads(body) if body else None,
            }
        )

    def _send(self, status: int, body: Any = None, headers: dict[str, str] | None = None) -> None:
        raw = json.dumps(body).encode() if body is not None else b""
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(raw)))
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(raw)

    def do_POST(self) -> None:  # noqa: N802
        self._record()
        if self.path == API_PATH + "auth":
            self._send(200, {"ticket_hash": TICKET, "user_id": 7})
        else:
            self._send(400, {"message": "unexpected"})

    def do_GET(self) -> None:  # noqa: N802
        self._record()
        if self.path.endswith("/participants"):
            self._send(404, None, {MISSING_RESOURCE_HEADER: "player"})
        elif self.path.endswith("/slow"):
            time.sleep(2)
            self._send(200, [])
        else:
            self._send(200, [])

    def do_PUT(self) -> None:  # noqa: N802
        self._record()
        self._send(200)

    def do_DELETE(self) -> None:  # noqa: N802
        self._record()
        self._send(200)


@pytest.fixture
def server() -> Generator[str, None, None]:
    """Run a local HTTP server and return its service root."""
    _Handler.seen = []
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), _Handler)
    httpd.daemon_threads = True
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    host, port = httpd.server_address[:2]
    yield f"http://{host}:{port}{API_PATH}"
    httpd.shutdown()
    httpd.server_close()


def _closed_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestQtNetworkTransport:
    """Tests for the transport on its own."""

    def test_timeout_setting(self, qtbot: QtBot) -> None:
        """Test the timeout is explicit and adjustable."""
        transport = QtNetworkTransport(timeout_ms=1500)
        assert transport.timeout_ms == 1500
        transport.set_timeout(-5)
        assert transport.timeout_ms == 0
        assert transport.pending_count == 0

    def test_unsupported_method(self, qtbot: QtBot) -> None:
        """Test methods outside the API's set are refused."""
        transport = QtNetworkTransport()
        request = ApiRequest(Operation.SET_VOLUME, "PATCH", "http://127.0.0.1/udj/0_6/")
        with pytest.raises(ValueError, match="Unsupported"):
            transport.send(request)

    def test_connection_refused(self, qtbot: QtBot) -> None:
        """Test an unreachable server yields a reply without status."""
        transport = QtNetworkTransport(timeout_ms=5000)
        url = f"http://127.0.0.1:{_closed_port()}{API_PATH}sorting_algorithms"
        request = ApiRequest(Operation.GET_SORTING_ALGORITHMS, "GET", url, context={"k": 1})
        with qtbot.wait_signal(transport.reply_received, timeout=5000) as blocker:
            transport.send(request)
        reply = blocker.args[0]
        assert reply.status_code == 0
        assert reply.error_string
        assert reply.method == "GET"
        assert reply.context == {"k": 1}
        assert transport.pending_count == 0

    def test_transfer_timeout(self, qtbot: QtBot, server: str) -> None:
        """Test slow exchanges are cut off by the request timeout."""
        transport = QtNetworkTransport(timeout_ms=200)
        request = ApiRequest(Operation.GET_SORTING_ALGORITHMS, "GET", server + "slow")
        with qtbot.wait_signal(transport.reply_received, timeout=5000) as blocker:
            transport.send(request)
        assert blocker.args[0].status_code == 0


class TestServerConnectionOverHttp:
    """End-to-end tests through a real HTTP exchange."""

    def test_login_then_player_calls(self, qtbot: QtBot, server: str) -> None:
        """Test login, a ticketed write and a missing-resource failure."""
        connection = ServerConnection(server, timeout_ms=5000)

        with qtbot.wait_signal(connection.authenticated, timeout=5000) as blocker:
            connection.authenticate("alice", "pw")
        assert blocker.args == [Authenticated(TICKET.encode(), 7)]
        assert _Handler.seen[0]["ticket"] is None
        assert _Handler.seen[0]["body"] == {"username": "alice", "password": "pw"}

        connection.set_player_id(1)
        with qtbot.wait_signal(connection.volume_set, timeout=5000) as blocker:
            connection.set_volume(3)
        assert blocker.args == [VolumeSet(3)]
        assert _Handler.seen[1]["method"] == "PUT"
        assert _Handler.seen[1]["path"] == API_PATH + "players/1/volume"
        assert _Handler.seen[1]["ticket"] == TICKET
        assert _Handler.seen[1]["body"] == {"volume": 3}

        with qtbot.wait_signal(connection.current_song_cleared, timeout=5000):
            connection.clear_current_song()
        assert _Handler.seen[2]["method"] == "DELETE"

        with qtbot.wait_signal(connection.get_participants_failed, timeout=5000) as blocker:
            connection.get_participants()
        failure = blocker.args[0]
        assert failure.kind is ErrorKind.RESOURCE_NOT_FOUND
        assert failure.header(MISSING_RESOURCE_HEADER) == "player"
        assert failure.message == "Get participants failed: resource not found"
