"""Reply dispatcher: turns completed exchanges into typed outcomes.

The transport reports every finished exchange through one channel with no
request handle. The dispatcher recovers the operation from the original
request's method and path, checks the status against that operation's
success code and produces exactly one Success or Failure.

Classification order:
    1. Match (method, normalized path) against the endpoint table.
    2. No HTTP status at all: transport error.
    3. The operation's success status: decode the body into its result.
    4. 401: hard authentication failure if the server challenges the ticket
       hash itself, otherwise a plain authentication failure.
    5. 404 with the missing-resource header: resource not found.
    6. Anything else below 500: rejected request; 500 and above: server error.
"""

import json
import logging
from collections.abc import Callable
from typing import Any, cast

from udjclient.api.endpoints import (
    AUTH_CHALLENGE_HEADER,
    DEFAULT_BASE_URL,
    MISSING_RESOURCE_HEADER,
    TICKET_CHALLENGE,
    Endpoint,
    classify,
)
from udjclient.api.protocol import HttpReply
from udjclient.models.outcome import (
    Authenticated,
    CurrentSongCleared,
    CurrentSongSet,
    ErrorKind,
    Failure,
    LibrarySynced,
    LocationSet,
    Operation,
    Outcome,
    ParticipantList,
    PasswordRemoved,
    PasswordSet,
    PlayerCreated,
    PlayerNameChanged,
    PlayerStateSet,
    PlaylistModified,
    SortingAlgorithmList,
    Success,
    VolumeSet,
)
from udjclient.models.player import PlayerLocation, SortingAlgorithm
from udjclient.models.song import ActivePlaylist, User

logger = logging.getLogger(__name__)

HTTP_UNAUTHORIZED = 401
HTTP_NOT_FOUND = 404
HTTP_SERVER_ERROR = 500

# Longest plain-text body used verbatim as an error message
_MAX_MESSAGE_LENGTH = 300

_MESSAGE_KEYS = ("message", "error", "detail")


class MalformedReplyError(ValueError):
    """A success reply whose body doesn't have the expected shape."""


# -- Body decoders ------------------------------------------------------------


def _json_body(reply: HttpReply) -> Any:
    try:
        return json.loads(reply.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedReplyError(f"Invalid JSON body: {e}") from e


def _json_object(reply: HttpReply) -> dict[str, Any]:
    data = _json_body(reply)
    if not isinstance(data, dict):
        raise MalformedReplyError("Expected a JSON object")
    return cast(dict[str, Any], data)


def _json_list(reply: HttpReply) -> list[dict[str, Any]]:
    data = _json_body(reply)
    if not isinstance(data, list):
        raise MalformedReplyError("Expected a JSON array")
    return cast(list[dict[str, Any]], data)


def _decode_authenticated(reply: HttpReply) -> Authenticated:
    data = _json_object(reply)
    ticket = data.get("ticket_hash")
    if not ticket or "user_id" not in data:
        raise MalformedReplyError("Missing ticket_hash or user_id")
    return Authenticated(ticket_hash=str(ticket).encode("latin-1"), user_id=data["user_id"])


def _decode_player_created(reply: HttpReply) -> PlayerCreated:
    data = _json_object(reply)
    if "player_id" not in data:
        raise MalformedReplyError("Missing player_id")
    return PlayerCreated(player_id=data["player_id"])


def _decode_active_playlist(reply: HttpReply) -> ActivePlaylist:
    return ActivePlaylist.from_dict(_json_object(reply))


def _decode_participants(reply: HttpReply) -> ParticipantList:
    return ParticipantList([User.from_dict(u) for u in _json_list(reply)])


def _decode_sorting_algorithms(reply: HttpReply) -> SortingAlgorithmList:
    return SortingAlgorithmList([SortingAlgorithm.from_dict(a) for a in _json_list(reply)])


# Most write operations carry no body on success; their result echoes the call
_DECODERS: dict[Operation, Callable[[HttpReply], Any]] = {
    Operation.AUTHENTICATE: _decode_authenticated,
    Operation.CREATE_PLAYER: _decode_player_created,
    Operation.GET_ACTIVE_PLAYLIST: _decode_active_playlist,
    Operation.MODIFY_ACTIVE_PLAYLIST: lambda r: PlaylistModified(
        added=frozenset(r.context.get("added", [])),
        removed=frozenset(r.context.get("removed", [])),
    ),
    Operation.SET_CURRENT_SONG: lambda r: CurrentSongSet(r.context.get("song_id")),
    Operation.CLEAR_CURRENT_SONG: lambda r: CurrentSongCleared(),
    Operation.SET_VOLUME: lambda r: VolumeSet(int(r.context.get("volume", 0))),
    Operation.SET_PLAYER_PASSWORD: lambda r: PasswordSet(str(r.context.get("password", ""))),
    Operation.REMOVE_PLAYER_PASSWORD: lambda r: PasswordRemoved(),
    Operation.SET_PLAYER_LOCATION: lambda r: LocationSet(PlayerLocation.from_dict(r.context)),
    Operation.MODIFY_LIBRARY: lambda r: LibrarySynced(
        added=frozenset(r.context.get("added", [])),
        deleted=frozenset(r.context.get("deleted", [])),
    ),
    Operation.GET_PARTICIPANTS: _decode_participants,
    Operation.GET_SORTING_ALGORITHMS: _decode_sorting_algorithms,
    Operation.SET_PLAYER_STATE: lambda r: PlayerStateSet(str(r.context.get("state", ""))),
    Operation.SET_PLAYER_NAME: lambda r: PlayerNameChanged(str(r.context.get("name", ""))),
}


# -- Failure helpers ----------------------------------------------------------


def _describe(operation: Operation | None) -> str:
    if operation is None:
        return "Request"
    return operation.value.replace("_", " ").capitalize()


def _fallback_message(operation: Operation | None, kind: ErrorKind, status: int) -> str:
    what = _describe(operation)
    if kind is ErrorKind.TRANSPORT_ERROR:
        return f"{what} failed: could not reach the server"
    if kind is ErrorKind.HARD_AUTH_FAILURE:
        return f"{what} failed: the session ticket is no longer valid"
    if kind is ErrorKind.AUTHENTICATION_FAILURE:
        return f"{what} failed: authentication required"
    if kind is ErrorKind.RESOURCE_NOT_FOUND:
        return f"{what} failed: resource not found"
    if kind is ErrorKind.SERVER_ERROR:
        return f"{what} failed: server error ({status})"
    return f"{what} failed: request rejected ({status})"


def error_message(reply: HttpReply) -> str:
    """Extract a human-readable message from a failed reply.

    Prefers a ``message``/``error``/``detail`` field of a JSON body, then a
    short plain-text body. The transport's error string is used only when
    the exchange got no HTTP status. Returns an empty string if none is
    available.
    """
    text = reply.body.decode("utf-8", errors="replace").strip()
    if text:
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            if len(text) <= _MAX_MESSAGE_LENGTH and not text.lstrip().startswith("<"):
                return text
        else:
            if isinstance(data, str) and data:
                return data
            if isinstance(data, dict):
                fields = cast(dict[str, Any], data)
                for key in _MESSAGE_KEYS:
                    value = fields.get(key)
                    if isinstance(value, str) and value:
                        return value
    return "" if reply.has_http_status else reply.error_string


def _is_ticket_challenge(reply: HttpReply) -> bool:
    challenge = reply.header(AUTH_CHALLENGE_HEADER)
    if not challenge:
        return False
    return any(part.strip().lower() == TICKET_CHALLENGE for part in challenge.split(","))


def failure_kind(endpoint: Endpoint | None, reply: HttpReply) -> ErrorKind:
    """Map a non-success reply to its error kind."""
    status = reply.status_code
    if not reply.has_http_status:
        return ErrorKind.TRANSPORT_ERROR
    if status == HTTP_UNAUTHORIZED:
        # Login itself can't invalidate a ticket, only reject credentials
        if (
            endpoint is not None
            and endpoint.operation is not Operation.AUTHENTICATE
            and _is_ticket_challenge(reply)
        ):
            return ErrorKind.HARD_AUTH_FAILURE
        return ErrorKind.AUTHENTICATION_FAILURE
    if status == HTTP_NOT_FOUND and reply.header(MISSING_RESOURCE_HEADER) is not None:
        return ErrorKind.RESOURCE_NOT_FOUND
    if status >= HTTP_SERVER_ERROR:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.REJECTED_REQUEST


class ReplyDispatcher:
    """Classifies completed exchanges into outcomes.

    The dispatcher is stateless apart from the base URL it uses to normalize
    request paths; classifying the same reply twice gives the same outcome.

    Example:
        dispatcher = ReplyDispatcher("https://udjplayer.com:4897/udj/0_6/")
        outcome = dispatcher.classify(reply)
        if outcome.is_success:
            print(outcome.result)
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL) -> None:
        """Initialize the dispatcher.

        Args:
            base_url: Service root the request URLs are relative to.
        """
        self._base_url = base_url

    @property
    def base_url(self) -> str:
        """Return the service root."""
        return self._base_url

    def classify(self, reply: HttpReply) -> Outcome:
        """Classify a completed exchange.

        Args:
            reply: The exchange as delivered by the transport.

        Returns:
            Exactly one Success or Failure.
        """
        endpoint = classify(reply.method, reply.url, self._base_url)
        if endpoint is None:
            logger.warning("Unrecognized reply: %s %s (%d)", reply.method, reply.url, reply.status_code)
            return self._failure(None, reply)

        operation = endpoint.operation
        if reply.has_http_status and reply.status_code == endpoint.success_status:
            try:
                result = _DECODERS[operation](reply)
            except (MalformedReplyError, KeyError, TypeError, ValueError) as e:
                logger.warning("Malformed %s reply: %s", operation.value, e)
                return Failure(
                    operation=operation,
                    kind=ErrorKind.SERVER_ERROR,
                    message=f"{_describe(operation)} failed: malformed server response",
                    status_code=reply.status_code,
                    headers=reply.headers,
                    context=reply.context,
                )
            logger.debug("%s succeeded", operation.value)
            return Success(operation=operation, result=result)

        return self._failure(endpoint, reply)

    def _failure(self, endpoint: Endpoint | None, reply: HttpReply) -> Failure:
        operation = endpoint.operation if endpoint else None
        kind = failure_kind(endpoint, reply)
        message = error_message(reply) or _fallback_message(operation, kind, reply.status_code)
        logger.debug(
            "%s failed: %s (status %d): %s",
            operation.value if operation else "unknown request",
            kind.value,
            reply.status_code,
            message,
        )
        return Failure(
            operation=operation,
            kind=kind,
            message=message,
            status_code=reply.status_code,
            headers=reply.headers,
            context=reply.context,
        )
