"""Operation outcomes: typed results, success and failure events.

Every exchange with the server ends in exactly one outcome. A ``Success``
carries the operation-specific result object, a ``Failure`` carries the
error kind together with the message, HTTP status and the full header set of
the response.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from udjclient.models.player import PlayerLocation, SortingAlgorithm
from udjclient.models.song import LibrarySongId, User

# Raw response headers as received, in order
Headers = tuple[tuple[str, str], ...]


class Operation(Enum):
    """The closed set of operations the server connection can issue."""

    AUTHENTICATE = "authenticate"
    CREATE_PLAYER = "create_player"
    GET_ACTIVE_PLAYLIST = "get_active_playlist"
    MODIFY_ACTIVE_PLAYLIST = "modify_active_playlist"
    SET_CURRENT_SONG = "set_current_song"
    CLEAR_CURRENT_SONG = "clear_current_song"
    SET_VOLUME = "set_volume"
    SET_PLAYER_PASSWORD = "set_player_password"
    REMOVE_PLAYER_PASSWORD = "remove_player_password"
    SET_PLAYER_LOCATION = "set_player_location"
    MODIFY_LIBRARY = "modify_library"
    GET_PARTICIPANTS = "get_participants"
    GET_SORTING_ALGORITHMS = "get_sorting_algorithms"
    SET_PLAYER_STATE = "set_player_state"
    SET_PLAYER_NAME = "set_player_name"


class ErrorKind(Enum):
    """Kinds of failure, independent of the HTTP status that produced them."""

    AUTHENTICATION_FAILURE = "authentication_failure"
    HARD_AUTH_FAILURE = "hard_auth_failure"
    RESOURCE_NOT_FOUND = "resource_not_found"
    REJECTED_REQUEST = "rejected_request"
    SERVER_ERROR = "server_error"
    TRANSPORT_ERROR = "transport_error"


# -- Operation results --------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Authenticated:
    """Result of a successful login."""

    ticket_hash: bytes
    user_id: int | str


@dataclass(frozen=True, slots=True)
class PlayerCreated:
    """Result of a successful player creation."""

    player_id: int | str


@dataclass(frozen=True, slots=True)
class PlaylistModified:
    """Songs added to and removed from the active playlist."""

    added: frozenset[LibrarySongId] = frozenset()
    removed: frozenset[LibrarySongId] = frozenset()


@dataclass(frozen=True, slots=True)
class CurrentSongSet:
    """The song that was made current."""

    song_id: LibrarySongId


@dataclass(frozen=True, slots=True)
class CurrentSongCleared:
    """The current song was cleared."""


@dataclass(frozen=True, slots=True)
class VolumeSet:
    """The volume that was applied on the server."""

    volume: int


@dataclass(frozen=True, slots=True)
class PasswordSet:
    """The password that was applied to the player."""

    password: str


@dataclass(frozen=True, slots=True)
class PasswordRemoved:
    """The player password was removed."""


@dataclass(frozen=True, slots=True)
class LocationSet:
    """The location that was applied to the player."""

    location: PlayerLocation


@dataclass(frozen=True, slots=True)
class LibrarySynced:
    """Library songs the server acknowledged."""

    added: frozenset[LibrarySongId] = frozenset()
    deleted: frozenset[LibrarySongId] = frozenset()

    @property
    def synced_ids(self) -> frozenset[LibrarySongId]:
        """Return every id the server now agrees on."""
        return self.added | self.deleted


@dataclass(frozen=True, slots=True)
class ParticipantList:
    """Users currently participating in the player."""

    participants: list[User] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class SortingAlgorithmList:
    """Sorting algorithms offered by the server."""

    algorithms: list[SortingAlgorithm] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class PlayerStateSet:
    """The state that was applied to the player."""

    state: str


@dataclass(frozen=True, slots=True)
class PlayerNameChanged:
    """The new player name."""

    name: str


# -- Outcome events -----------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Success:
    """A successful operation outcome.

    Attributes:
        operation: The operation that completed.
        result: Operation-specific result object.
    """

    operation: Operation
    result: Any

    @property
    def is_success(self) -> bool:
        """Return True (for symmetry with Failure)."""
        return True


@dataclass(frozen=True, slots=True)
class Failure:
    """A failed operation outcome.

    Attributes:
        operation: The operation that failed, or None if the reply could not
            be matched to any known operation.
        kind: Classified error kind.
        message: Human-readable error message.
        status_code: HTTP status code (0 when no HTTP response exists).
        headers: Complete response header set, verbatim.
        context: Parameters of the failed call (e.g. the attempted password).
    """

    operation: Operation | None
    kind: ErrorKind
    message: str
    status_code: int = 0
    headers: Headers = ()
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        """Return False."""
        return False

    def header(self, name: str) -> str | None:
        """Return the first header value matching name (case-insensitive)."""
        wanted = name.lower()
        for key, value in self.headers:
            if key.lower() == wanted:
                return value
        return None

    def __str__(self) -> str:
        """Return a compact description for logs and dialogs."""
        if self.status_code:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


Outcome = Success | Failure
