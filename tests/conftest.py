"""Test fixtures for udjclient tests."""

import os

# Qt must not need a display in CI
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from collections.abc import Generator  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from PySide6.QtCore import QObject, Signal  # noqa: E402
from pytestqt.qtbot import QtBot  # noqa: E402

from udjclient.api.client import ServerConnection  # noqa: E402
from udjclient.api.protocol import ApiRequest, HttpReply  # noqa: E402
from udjclient.core.session import Session  # noqa: E402
from udjclient.models.outcome import Headers  # noqa: E402

BASE_URL = "https://udj.test:4897/udj/0_6/"
TICKET = "abc"
USER_ID = 7
PLAYER_ID = 42


class FakeTransport(QObject):
    """Transport double: records requests, replays synthetic replies."""

    reply_received = Signal(object)

    def __init__(self) -> None:
        super().__init__()
        self.sent: list[ApiRequest] = []
        self.aborted = False

    @property
    def last(self) -> ApiRequest:
        """Return the most recently sent request."""
        return self.sent[-1]

    def send(self, request: ApiRequest) -> None:
        self.sent.append(request)

    def abort_all(self) -> None:
        self.aborted = True

    def respond(
        self,
        request: ApiRequest,
        status: int,
        body: Any = None,
        headers: Headers = (),
    ) -> None:
        """Deliver a reply for a previously sent request."""
        self.reply_received.emit(HttpReply.for_request(request, status, body, headers))

    def fail(self, request: ApiRequest, error_string: str = "Connection refused") -> None:
        """Deliver a transport-level failure (no HTTP status)."""
        self.reply_received.emit(HttpReply.for_request(request, 0, error_string=error_string))


@pytest.fixture
def base_url() -> str:
    """Return the service root used in tests."""
    return BASE_URL


@pytest.fixture
def session() -> Session:
    """Return an authenticated session with a player."""
    return Session(ticket_hash=TICKET.encode(), user_id=USER_ID, player_id=PLAYER_ID)


@pytest.fixture
def transport() -> FakeTransport:
    """Return a fresh fake transport."""
    return FakeTransport()


@pytest.fixture
def connection(qtbot: QtBot, transport: FakeTransport) -> Generator[ServerConnection, None, None]:
    """Return a connection with no session, wired to the fake transport."""
    conn = ServerConnection(BASE_URL, transport=transport)
    yield conn
    conn.deleteLater()


@pytest.fixture
def player_connection(connection: ServerConnection) -> ServerConnection:
    """Return a connection that is logged in and controls a player."""
    connection.set_ticket(TICKET)
    connection.set_user_id(USER_ID)
    connection.set_player_id(PLAYER_ID)
    return connection


def song_json(song_id: int, title: str = "Song") -> dict[str, Any]:
    """Return a library song as the server reports it."""
    return {
        "id": song_id,
        "title": title,
        "artist": "Artist",
        "album": "Album",
        "track": 1,
        "genre": "Rock",
        "duration": 180,
    }


def user_json(user_id: int, username: str) -> dict[str, Any]:
    """Return a user as the server reports it."""
    return {"id": user_id, "username": username, "first_name": "", "last_name": ""}
