"""Tests for the pure request builders."""

import json
from dataclasses import replace

import pytest
from conftest import BASE_URL, TICKET

from udjclient.api import builders
from udjclient.api.endpoints import TICKET_HEADER
from udjclient.api.protocol import ApiRequest
from udjclient.core.session import Session
from udjclient.models.outcome import Operation
from udjclient.models.player import PlayerLocation, PlayerState
from udjclient.models.song import LibrarySong


def _all_requests(session: Session) -> list[ApiRequest]:
    """Build one request per operation."""
    location = PlayerLocation("1 Main St", "Springfield", "IL", "62701")
    return [
        builders.build_authenticate(BASE_URL, "alice", "pw"),
        builders.build_create_player(BASE_URL, session, "Party", ""),
        builders.build_get_active_playlist(BASE_URL, session),
        builders.build_modify_active_playlist(BASE_URL, session, [1], [2]),
        builders.build_set_current_song(BASE_URL, session, 3),
        builders.build_clear_current_song(BASE_URL, session),
        builders.build_set_volume(BASE_URL, session, 5),
        builders.build_set_player_password(BASE_URL, session, "secret"),
        builders.build_remove_player_password(BASE_URL, session),
        builders.build_set_player_location(BASE_URL, session, location),
        builders.build_modify_library(BASE_URL, session, [LibrarySong(1, "A")], [9]),
        builders.build_get_participants(BASE_URL, session),
        builders.build_get_sorting_algorithms(BASE_URL, session),
        builders.build_set_player_state(BASE_URL, session, PlayerState.PAUSED),
        builders.build_set_player_name(BASE_URL, session, "Renamed"),
    ]


class TestTicketHeader:
    """Tests for ticket header attachment."""

    def test_all_but_login_carry_current_ticket(self, session: Session) -> None:
        """Test every non-login request carries the session ticket."""
        requests = _all_requests(session)
        assert {r.operation for r in requests} == set(Operation)
        for request in requests:
            if request.operation is Operation.AUTHENTICATE:
                assert request.header(TICKET_HEADER) is None
            else:
                assert request.header(TICKET_HEADER) == TICKET

    def test_ticket_follows_snapshot(self, session: Session) -> None:
        """Test the header reflects the snapshot passed in."""
        newer = replace(session, ticket_hash=b"fresh")
        assert builders.build_set_volume(BASE_URL, newer, 1).header(TICKET_HEADER) == "fresh"

    def test_sorting_algorithms_without_ticket(self) -> None:
        """Test sorting algorithms can be listed anonymously."""
        request = builders.build_get_sorting_algorithms(BASE_URL, Session())
        assert request.header(TICKET_HEADER) is None
        assert request.url == BASE_URL + "sorting_algorithms"

    def test_ticketed_request_without_ticket(self) -> None:
        """Test building a ticketed request with an empty session fails."""
        with pytest.raises(ValueError, match="authenticated session"):
            builders.build_get_participants(BASE_URL, Session(player_id=1))

    def test_all_requests_are_json(self, session: Session) -> None:
        """Test every request declares a JSON content type."""
        for request in _all_requests(session):
            assert request.header("content-type") == "application/json"


class TestBodies:
    """Tests for request bodies and targets."""

    def test_authenticate(self) -> None:
        """Test login body and target."""
        request = builders.build_authenticate(BASE_URL, "alice", "pw")
        assert request.method == "POST"
        assert request.url == BASE_URL + "auth"
        assert request.json() == {"username": "alice", "password": "pw"}

    def test_create_player_with_empty_password(self, session: Session) -> None:
        """Test an empty password is sent, not omitted."""
        request = builders.build_create_player(BASE_URL, session, "Party", "")
        assert request.url == BASE_URL + "players"
        body = request.json()
        assert body == {"name": "Party", "password": ""}
        assert "password" in body

    def test_create_player_with_location(self, session: Session) -> None:
        """Test the optional location block."""
        location = PlayerLocation("1 Main St", "Springfield", "IL", "62701")
        request = builders.build_create_player(BASE_URL, session, "Party", "pw", location)
        assert request.json()["location"] == {
            "address": "1 Main St",
            "city": "Springfield",
            "state": "IL",
            "zipcode": "62701",
        }

    def test_create_player_needs_name(self, session: Session) -> None:
        """Test an empty player name is a contract violation."""
        with pytest.raises(ValueError):
            builders.build_create_player(BASE_URL, session, "")

    def test_modify_active_playlist(self, session: Session) -> None:
        """Test playlist modification body and echoed context."""
        request = builders.build_modify_active_playlist(BASE_URL, session, {3, 1, 3}, [7])
        assert request.method == "POST"
        assert request.url == BASE_URL + "players/42/playlist"
        assert request.json() == {"songs_added": [1, 3], "songs_removed": [7]}
        assert request.context == {"added": [1, 3], "removed": [7]}

    def test_set_current_song(self, session: Session) -> None:
        """Test current song body."""
        request = builders.build_set_current_song(BASE_URL, session, 12)
        assert request.method == "PUT"
        assert request.json() == {"lib_id": 12}

    def test_bodiless_requests(self, session: Session) -> None:
        """Test clear/remove/get requests have no body."""
        for request in (
            builders.build_clear_current_song(BASE_URL, session),
            builders.build_remove_player_password(BASE_URL, session),
            builders.build_get_active_playlist(BASE_URL, session),
        ):
            assert request.body == b""
            assert request.json() is None

    def test_clear_and_remove_use_delete(self, session: Session) -> None:
        """Test DELETE is used for clearing and removing."""
        assert builders.build_clear_current_song(BASE_URL, session).method == "DELETE"
        assert builders.build_remove_player_password(BASE_URL, session).method == "DELETE"

    @pytest.mark.parametrize("volume", [0, 10])
    def test_volume_bounds(self, session: Session, volume: int) -> None:
        """Test volume limits are accepted."""
        assert builders.build_set_volume(BASE_URL, session, volume).json() == {"volume": volume}

    @pytest.mark.parametrize("volume", [-1, 11, True])
    def test_volume_out_of_range(self, session: Session, volume: int) -> None:
        """Test invalid volumes are rejected."""
        with pytest.raises(ValueError, match="Volume"):
            builders.build_set_volume(BASE_URL, session, volume)

    def test_password(self, session: Session) -> None:
        """Test password body and context."""
        request = builders.build_set_player_password(BASE_URL, session, "s3cret")
        assert request.json() == {"password": "s3cret"}
        assert request.context == {"password": "s3cret"}

    def test_location(self, session: Session) -> None:
        """Test location body keys."""
        location = PlayerLocation("1 Main St", "Springfield", "IL", "62701")
        request = builders.build_set_player_location(BASE_URL, session, location)
        assert set(request.json()) == {"address", "city", "state", "zipcode"}

    def test_modify_library(self, session: Session) -> None:
        """Test library body carries full songs and deleted ids."""
        songs = [LibrarySong(2, "B", "Artist"), LibrarySong(1, "A", "Artist")]
        request = builders.build_modify_library(BASE_URL, session, songs, [9, 8])
        body = request.json()
        assert [s["id"] for s in body["songs_added"]] == [2, 1]
        assert body["songs_added"][0]["artist"] == "Artist"
        assert body["songs_deleted"] == [8, 9]
        assert request.context == {"added": [1, 2], "deleted": [8, 9]}

    def test_player_state_from_string(self, session: Session) -> None:
        """Test state strings are validated and normalized."""
        request = builders.build_set_player_state(BASE_URL, session, "Playing")
        assert request.json() == {"state": "playing"}
        with pytest.raises(ValueError):
            builders.build_set_player_state(BASE_URL, session, "rewinding")

    def test_player_scoped_without_player(self) -> None:
        """Test player-scoped requests need a player id."""
        with pytest.raises(ValueError, match="player id"):
            builders.build_set_volume(BASE_URL, Session(ticket_hash=b"t"), 3)

    def test_body_is_compact_json(self, session: Session) -> None:
        """Test the serialized form is plain UTF-8 JSON."""
        request = builders.build_set_player_name(BASE_URL, session, "Café")
        assert json.loads(request.body.decode("utf-8")) == {"name": "Café"}
