"""Request builders for each UDJ operation.

Builders are pure: they turn call parameters plus a session snapshot into an
ApiRequest and never touch the network. Invalid caller input raises
ValueError.
"""

import json
from collections.abc import Iterable
from typing import Any

from udjclient.api.endpoints import TICKET_HEADER, endpoint_for, endpoint_url
from udjclient.api.protocol import JSON_CONTENT_TYPE, ApiRequest
from udjclient.core.session import Session
from udjclient.models.outcome import Operation
from udjclient.models.player import PlayerLocation, PlayerState
from udjclient.models.song import LibrarySong, LibrarySongId

MIN_VOLUME = 0
MAX_VOLUME = 10


def _encode(payload: dict[str, Any] | None) -> bytes:
    if payload is None:
        return b""
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


def _sorted_ids(ids: Iterable[LibrarySongId]) -> list[LibrarySongId]:
    """Return ids in a stable order (mixed int/str ids sort by text)."""
    return sorted(set(ids), key=str)


def _build(
    base_url: str,
    session: Session,
    operation: Operation,
    payload: dict[str, Any] | None = None,
    context: dict[str, Any] | None = None,
    method: str | None = None,
) -> ApiRequest:
    """Assemble a request for an operation from the endpoint table.

    Raises:
        ValueError: If the endpoint needs a ticket or player the session
            doesn't have.
    """
    endpoint = endpoint_for(operation, method)
    if endpoint.requires_ticket and not session.is_authenticated:
        raise ValueError(f"{operation.value} requires an authenticated session")

    headers: list[tuple[str, str]] = [("Content-Type", JSON_CONTENT_TYPE)]
    # Attach the ticket to everything but login; optional endpoints get it when known
    if operation is not Operation.AUTHENTICATE and session.is_authenticated:
        headers.append((TICKET_HEADER, session.ticket_header_value))

    return ApiRequest(
        operation=operation,
        method=endpoint.method,
        url=endpoint_url(base_url, endpoint, session.player_id),
        body=_encode(payload),
        headers=tuple(headers),
        context=context or {},
    )


def build_authenticate(base_url: str, username: str, password: str) -> ApiRequest:
    """Build a login request. Authentication never carries a ticket."""
    return _build(
        base_url,
        Session(),
        Operation.AUTHENTICATE,
        {"username": username, "password": password},
        {"username": username},
    )


def build_create_player(
    base_url: str,
    session: Session,
    name: str,
    password: str = "",
    location: PlayerLocation | None = None,
) -> ApiRequest:
    """Build a player creation request.

    The password key is always sent; an empty string means the player has
    no password.
    """
    if not name:
        raise ValueError("Player name must not be empty")
    payload: dict[str, Any] = {"name": name, "password": password}
    if location is not None:
        payload["location"] = location.to_dict()
    return _build(base_url, session, Operation.CREATE_PLAYER, payload, {"name": name})


def build_get_active_playlist(base_url: str, session: Session) -> ApiRequest:
    """Build a request for the player's active playlist."""
    return _build(base_url, session, Operation.GET_ACTIVE_PLAYLIST)


def build_modify_active_playlist(
    base_url: str,
    session: Session,
    to_add: Iterable[LibrarySongId] = (),
    to_remove: Iterable[LibrarySongId] = (),
) -> ApiRequest:
    """Build a request adding and removing songs on the active playlist."""
    added = _sorted_ids(to_add)
    removed = _sorted_ids(to_remove)
    return _build(
        base_url,
        session,
        Operation.MODIFY_ACTIVE_PLAYLIST,
        {"songs_added": added, "songs_removed": removed},
        {"added": added, "removed": removed},
        method="POST",
    )


def build_set_current_song(base_url: str, session: Session, song_id: LibrarySongId) -> ApiRequest:
    """Build a request making a queued song the current song."""
    return _build(
        base_url,
        session,
        Operation.SET_CURRENT_SONG,
        {"lib_id": song_id},
        {"song_id": song_id},
    )


def build_clear_current_song(base_url: str, session: Session) -> ApiRequest:
    """Build a request clearing the current song."""
    return _build(base_url, session, Operation.CLEAR_CURRENT_SONG)


def build_set_volume(base_url: str, session: Session, volume: int) -> ApiRequest:
    """Build a volume change request.

    Raises:
        ValueError: If volume is outside 0-10.
    """
    if isinstance(volume, bool) or not MIN_VOLUME <= volume <= MAX_VOLUME:
        raise ValueError(f"Volume must be between {MIN_VOLUME} and {MAX_VOLUME}, got {volume!r}")
    return _build(base_url, session, Operation.SET_VOLUME, {"volume": volume}, {"volume": volume})


def build_set_player_password(base_url: str, session: Session, password: str) -> ApiRequest:
    """Build a request setting the player password."""
    return _build(
        base_url,
        session,
        Operation.SET_PLAYER_PASSWORD,
        {"password": password},
        {"password": password},
    )


def build_remove_player_password(base_url: str, session: Session) -> ApiRequest:
    """Build a request removing the player password."""
    return _build(base_url, session, Operation.REMOVE_PLAYER_PASSWORD)


def build_set_player_location(
    base_url: str, session: Session, location: PlayerLocation
) -> ApiRequest:
    """Build a request setting the player's street address."""
    payload = location.to_dict()
    return _build(base_url, session, Operation.SET_PLAYER_LOCATION, payload, dict(payload))


def build_modify_library(
    base_url: str,
    session: Session,
    songs_to_add: Iterable[LibrarySong] = (),
    songs_to_delete: Iterable[LibrarySongId] = (),
) -> ApiRequest:
    """Build a request syncing local library changes to the server."""
    songs = list(songs_to_add)
    deleted = _sorted_ids(songs_to_delete)
    return _build(
        base_url,
        session,
        Operation.MODIFY_LIBRARY,
        {"songs_added": [s.to_dict() for s in songs], "songs_deleted": deleted},
        {"added": _sorted_ids(s.id for s in songs), "deleted": deleted},
    )


def build_get_participants(base_url: str, session: Session) -> ApiRequest:
    """Build a request listing the player's participants."""
    return _build(base_url, session, Operation.GET_PARTICIPANTS)


def build_get_sorting_algorithms(base_url: str, session: Session) -> ApiRequest:
    """Build a request listing the server's sorting algorithms."""
    return _build(base_url, session, Operation.GET_SORTING_ALGORITHMS)


def build_set_player_state(
    base_url: str, session: Session, state: PlayerState | str
) -> ApiRequest:
    """Build a request changing the player state.

    Raises:
        ValueError: If state is not a known player state.
    """
    if not isinstance(state, PlayerState):
        state = PlayerState.from_string(state)
    return _build(
        base_url,
        session,
        Operation.SET_PLAYER_STATE,
        {"state": state.value},
        {"state": state.value},
    )


def build_set_player_name(base_url: str, session: Session, name: str) -> ApiRequest:
    """Build a request renaming the player."""
    if not name:
        raise ValueError("Player name must not be empty")
    return _build(base_url, session, Operation.SET_PLAYER_NAME, {"name": name}, {"name": name})
