"""Endpoint table for the UDJ player API.

Each row is a unique (method, path shape) pair. Player-scoped paths carry the
player id as their second segment; when a reply is classified that segment is
treated as a wildcard.
"""

from dataclasses import dataclass
from urllib.parse import urlsplit

from udjclient.models.outcome import Operation

DEFAULT_BASE_URL = "https://udjplayer.com:4897/udj/0_6/"

TICKET_HEADER = "X-Udj-Ticket-Hash"
MISSING_RESOURCE_HEADER = "X-Udj-Missing-Resource"

# A 401 carrying this challenge means the ticket itself is no longer valid
AUTH_CHALLENGE_HEADER = "WWW-Authenticate"
TICKET_CHALLENGE = "ticket-hash"

_ID_SEGMENT = "{id}"

HTTP_OK = 200
HTTP_CREATED = 201


@dataclass(frozen=True, slots=True)
class Endpoint:
    """One row of the endpoint table.

    Attributes:
        operation: Operation this endpoint implements.
        method: HTTP method (upper case).
        path: Path template relative to the base URL; ``{id}`` is the
            player id.
        success_status: Status code the server returns on success.
        requires_ticket: Whether the ticket header is mandatory.
    """

    operation: Operation
    method: str
    path: str
    success_status: int = HTTP_OK
    requires_ticket: bool = True

    @property
    def requires_player(self) -> bool:
        """Return True if the path is scoped to a player."""
        return _ID_SEGMENT in self.path

    @property
    def segments(self) -> tuple[str, ...]:
        """Return the path template split into segments."""
        return tuple(self.path.split("/"))

    def matches(self, method: str, segments: tuple[str, ...]) -> bool:
        """Return True if method and concrete path segments fit this shape."""
        if method != self.method or len(segments) != len(self.segments):
            return False
        return all(
            want == _ID_SEGMENT or want == got
            for want, got in zip(self.segments, segments, strict=True)
        )


ENDPOINTS: tuple[Endpoint, ...] = (
    Endpoint(Operation.AUTHENTICATE, "POST", "auth", requires_ticket=False),
    Endpoint(Operation.CREATE_PLAYER, "POST", "players", HTTP_CREATED),
    Endpoint(Operation.GET_ACTIVE_PLAYLIST, "GET", "players/{id}/playlist"),
    Endpoint(Operation.MODIFY_ACTIVE_PLAYLIST, "POST", "players/{id}/playlist"),
    Endpoint(Operation.MODIFY_ACTIVE_PLAYLIST, "PUT", "players/{id}/playlist"),
    Endpoint(Operation.SET_CURRENT_SONG, "PUT", "players/{id}/current_song"),
    Endpoint(Operation.CLEAR_CURRENT_SONG, "DELETE", "players/{id}/current_song"),
    Endpoint(Operation.SET_VOLUME, "PUT", "players/{id}/volume"),
    Endpoint(Operation.SET_PLAYER_PASSWORD, "PUT", "players/{id}/password"),
    Endpoint(Operation.REMOVE_PLAYER_PASSWORD, "DELETE", "players/{id}/password"),
    Endpoint(Operation.SET_PLAYER_LOCATION, "PUT", "players/{id}/location"),
    Endpoint(Operation.MODIFY_LIBRARY, "POST", "players/{id}/library"),
    Endpoint(Operation.GET_PARTICIPANTS, "GET", "players/{id}/participants"),
    Endpoint(Operation.GET_SORTING_ALGORITHMS, "GET", "sorting_algorithms", requires_ticket=False),
    Endpoint(Operation.SET_PLAYER_STATE, "PUT", "players/{id}/state"),
    Endpoint(Operation.SET_PLAYER_NAME, "PUT", "players/{id}/name"),
)


def endpoint_for(operation: Operation, method: str | None = None) -> Endpoint:
    """Return the endpoint row for an operation.

    Args:
        operation: The operation to look up.
        method: Disambiguates operations reachable by more than one method.
            Defaults to the first row listed for the operation.

    Raises:
        KeyError: If no row matches.
    """
    for endpoint in ENDPOINTS:
        if endpoint.operation is operation and (method is None or endpoint.method == method):
            return endpoint
    raise KeyError(f"No endpoint for {operation.value} {method or ''}".rstrip())


def normalize_base_url(base_url: str) -> str:
    """Return base_url with exactly one trailing slash."""
    return base_url.rstrip("/") + "/"


def endpoint_url(base_url: str, endpoint: Endpoint, player_id: int | str | None = None) -> str:
    """Build the absolute URL for an endpoint.

    Raises:
        ValueError: If the endpoint is player-scoped and no player id is given.
    """
    path = endpoint.path
    if endpoint.requires_player:
        if player_id is None or player_id == "":
            raise ValueError(f"{endpoint.operation.value} requires a player id")
        path = path.replace(_ID_SEGMENT, str(player_id))
    return normalize_base_url(base_url) + path


def relative_segments(url: str, base_url: str) -> tuple[str, ...] | None:
    """Split url into path segments relative to the base URL path.

    Query strings, fragments and trailing slashes are ignored. Returns None if
    the URL does not live under the base path.
    """
    base_path = urlsplit(normalize_base_url(base_url)).path
    path = urlsplit(url).path
    if not path.startswith(base_path):
        # Tolerate a missing trailing slash on the request path
        if path.rstrip("/") + "/" != base_path:
            return None
        return ()
    relative = path[len(base_path):].strip("/")
    return tuple(relative.split("/")) if relative else ()


def classify(method: str, url: str, base_url: str = DEFAULT_BASE_URL) -> Endpoint | None:
    """Identify the endpoint a request (method, URL) pair belongs to.

    Args:
        method: HTTP method of the original request.
        url: Absolute URL of the original request.
        base_url: Service root the URL is relative to.

    Returns:
        The matching Endpoint, or None if nothing matches.
    """
    segments = relative_segments(url, base_url)
    if segments is None:
        return None
    method = method.upper()
    for endpoint in ENDPOINTS:
        if endpoint.matches(method, segments):
            return endpoint
    return None
