"""UDJ server connection.

ServerConnection is the long-lived client object the rest of the
application talks to. Operations return immediately; their outcomes arrive
later as Qt signals once the transport reports the matching exchange.
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from PySide6.QtCore import QObject, QTimer, Signal

from udjclient.api import builders
from udjclient.api.dispatcher import ReplyDispatcher
from udjclient.api.endpoints import DEFAULT_BASE_URL, endpoint_for, normalize_base_url
from udjclient.api.protocol import ApiRequest, HttpReply
from udjclient.api.transport import DEFAULT_TIMEOUT_MS, QtNetworkTransport
from udjclient.core.session import Session, SessionState
from udjclient.models.outcome import (
    ErrorKind,
    Failure,
    Operation,
    Outcome,
    Success,
)
from udjclient.models.player import PlayerLocation, PlayerState
from udjclient.models.song import LibrarySong, LibrarySongId

logger = logging.getLogger(__name__)

# Operation -> (success signal, failure signal) attribute names
_SIGNALS: dict[Operation, tuple[str, str]] = {
    Operation.AUTHENTICATE: ("authenticated", "auth_failed"),
    Operation.CREATE_PLAYER: ("player_created", "player_creation_failed"),
    Operation.GET_ACTIVE_PLAYLIST: ("active_playlist_received", "get_active_playlist_failed"),
    Operation.MODIFY_ACTIVE_PLAYLIST: ("active_playlist_modified", "active_playlist_mod_failed"),
    Operation.SET_CURRENT_SONG: ("current_song_set", "set_current_song_failed"),
    Operation.CLEAR_CURRENT_SONG: ("current_song_cleared", "current_song_clear_failed"),
    Operation.SET_VOLUME: ("volume_set", "set_volume_failed"),
    Operation.SET_PLAYER_PASSWORD: ("player_password_set", "player_password_set_failed"),
    Operation.REMOVE_PLAYER_PASSWORD: ("player_password_removed", "player_password_remove_failed"),
    Operation.SET_PLAYER_LOCATION: ("player_location_set", "player_location_set_failed"),
    Operation.MODIFY_LIBRARY: ("library_synced", "library_mod_failed"),
    Operation.GET_PARTICIPANTS: ("participants_received", "get_participants_failed"),
    Operation.GET_SORTING_ALGORITHMS: (
        "sorting_algorithms_received",
        "get_sorting_algorithms_failed",
    ),
    Operation.SET_PLAYER_STATE: ("player_state_set", "player_state_set_failed"),
    Operation.SET_PLAYER_NAME: ("player_name_changed", "player_name_change_failed"),
}


class ServerConnection(QObject):
    """Asynchronous client for the UDJ player API.

    Every issued operation produces exactly one outcome. ``outcome_ready``
    always fires with the Success or Failure; in addition exactly one typed
    signal fires: the operation's success signal, its failure signal, or
    ``hard_auth_failed`` when the server no longer accepts the ticket.

    Replies are dispatched on the thread that owns the transport (the
    connection's thread), so session updates need no locking. Nothing is
    retried or cached.

    Example:
        connection = ServerConnection()
        connection.authenticated.connect(lambda auth: print(auth.user_id))
        connection.auth_failed.connect(lambda failure: print(failure))
        connection.authenticate("alice", "secret")
    """

    # Every outcome, exactly once per operation
    outcome_ready = Signal(object)  # Success | Failure

    # Ticket rejected by the server; the session ticket has been cleared
    hard_auth_failed = Signal(object)  # Failure

    # Per-operation signals. Success signals carry the result object,
    # failure signals carry the Failure.
    authenticated = Signal(object)  # Authenticated
    auth_failed = Signal(object)
    player_created = Signal(object)  # PlayerCreated
    player_creation_failed = Signal(object)
    active_playlist_received = Signal(object)  # ActivePlaylist
    get_active_playlist_failed = Signal(object)
    active_playlist_modified = Signal(object)  # PlaylistModified
    active_playlist_mod_failed = Signal(object)
    current_song_set = Signal(object)  # CurrentSongSet
    set_current_song_failed = Signal(object)
    current_song_cleared = Signal(object)  # CurrentSongCleared
    current_song_clear_failed = Signal(object)
    volume_set = Signal(object)  # VolumeSet
    set_volume_failed = Signal(object)
    player_password_set = Signal(object)  # PasswordSet
    player_password_set_failed = Signal(object)
    player_password_removed = Signal(object)  # PasswordRemoved
    player_password_remove_failed = Signal(object)
    player_location_set = Signal(object)  # LocationSet
    player_location_set_failed = Signal(object)
    library_synced = Signal(object)  # LibrarySynced
    library_mod_failed = Signal(object)
    participants_received = Signal(object)  # ParticipantList
    get_participants_failed = Signal(object)
    sorting_algorithms_received = Signal(object)  # SortingAlgorithmList
    get_sorting_algorithms_failed = Signal(object)
    player_state_set = Signal(object)  # PlayerStateSet
    player_state_set_failed = Signal(object)
    player_name_changed = Signal(object)  # PlayerNameChanged
    player_name_change_failed = Signal(object)

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        transport: Any = None,
        parent: QObject | None = None,
    ) -> None:
        """Initialize the connection.

        Args:
            base_url: Versioned service root, e.g.
                ``https://udjplayer.com:4897/udj/0_6/``.
            timeout_ms: Per-request timeout for the default transport.
            transport: Object with ``send(ApiRequest)`` and a
                ``reply_received`` signal. Defaults to a QtNetworkTransport.
            parent: Optional Qt parent.
        """
        super().__init__(parent)
        self._base_url = normalize_base_url(base_url)
        self._session = SessionState()
        self._dispatcher = ReplyDispatcher(self._base_url)
        if transport is None:
            transport = QtNetworkTransport(timeout_ms, self)
        self._transport = transport
        self._transport.reply_received.connect(self._on_reply)

    @property
    def base_url(self) -> str:
        """Return the service root."""
        return self._base_url

    @property
    def session(self) -> Session:
        """Return a snapshot of the current session."""
        return self._session.snapshot()

    @property
    def transport(self) -> Any:
        """Return the underlying transport."""
        return self._transport

    # -- Session ---------------------------------------------------------------

    def set_ticket(self, ticket_hash: bytes | str) -> None:
        """Set the ticket used for authenticated requests."""
        self._session.set_ticket(ticket_hash)

    def set_user_id(self, user_id: int | str | None) -> None:
        """Set the user id issued at authentication."""
        self._session.set_user_id(user_id)

    def set_player_id(self, player_id: int | str | None) -> None:
        """Set the player this connection controls."""
        self._session.set_player_id(player_id)

    def logout(self) -> None:
        """Forget ticket, user and player."""
        self._session.reset()

    def abort_pending(self) -> None:
        """Abort in-flight exchanges (each still reports a transport error)."""
        abort = getattr(self._transport, "abort_all", None)
        if abort is not None:
            abort()

    # -- Operations ------------------------------------------------------------

    def authenticate(self, username: str, password: str) -> None:
        """Log in with username and password.

        On success the ticket hash and user id are stored in the session
        and ``authenticated`` fires.
        """
        self._send(builders.build_authenticate(self._base_url, username, password))

    def create_player(
        self,
        name: str,
        password: str = "",
        location: PlayerLocation | None = None,
    ) -> None:
        """Create a new player owned by the logged-in user.

        Args:
            name: Player name.
            password: Player password; empty for no password.
            location: Optional street address of the player.
        """
        self._issue(Operation.CREATE_PLAYER, builders.build_create_player, name, password, location)

    def get_active_playlist(self) -> None:
        """Fetch the player's active playlist."""
        self._issue(Operation.GET_ACTIVE_PLAYLIST, builders.build_get_active_playlist)

    def modify_active_playlist(
        self,
        to_add: Iterable[LibrarySongId] = (),
        to_remove: Iterable[LibrarySongId] = (),
    ) -> None:
        """Add and remove songs on the active playlist in one call."""
        self._issue(
            Operation.MODIFY_ACTIVE_PLAYLIST,
            builders.build_modify_active_playlist,
            to_add,
            to_remove,
        )

    def add_songs_to_active_playlist(self, song_ids: Iterable[LibrarySongId]) -> None:
        """Queue songs on the active playlist."""
        self.modify_active_playlist(to_add=song_ids)

    def remove_songs_from_active_playlist(self, song_ids: Iterable[LibrarySongId]) -> None:
        """Remove songs from the active playlist."""
        self.modify_active_playlist(to_remove=song_ids)

    def set_current_song(self, song_id: LibrarySongId) -> None:
        """Make a queued song the current song."""
        self._issue(Operation.SET_CURRENT_SONG, builders.build_set_current_song, song_id)

    def clear_current_song(self) -> None:
        """Clear the current song."""
        self._issue(Operation.CLEAR_CURRENT_SONG, builders.build_clear_current_song)

    def set_volume(self, volume: int) -> None:
        """Set the player volume (0-10)."""
        self._issue(Operation.SET_VOLUME, builders.build_set_volume, volume)

    def set_player_password(self, password: str) -> None:
        """Set the player password."""
        self._issue(Operation.SET_PLAYER_PASSWORD, builders.build_set_player_password, password)

    def remove_player_password(self) -> None:
        """Remove the player password."""
        self._issue(Operation.REMOVE_PLAYER_PASSWORD, builders.build_remove_player_password)

    def set_player_location(
        self,
        street_address: str,
        city: str,
        state: str,
        zipcode: str,
    ) -> None:
        """Set the player's street address."""
        location = PlayerLocation(street_address, city, state, zipcode)
        self._issue(Operation.SET_PLAYER_LOCATION, builders.build_set_player_location, location)

    def modify_library(
        self,
        songs_to_add: Iterable[LibrarySong] = (),
        songs_to_delete: Iterable[LibrarySongId] = (),
    ) -> None:
        """Sync local library additions and deletions to the server."""
        self._issue(
            Operation.MODIFY_LIBRARY,
            builders.build_modify_library,
            songs_to_add,
            songs_to_delete,
        )

    def get_participants(self) -> None:
        """Fetch the users participating in the player."""
        self._issue(Operation.GET_PARTICIPANTS, builders.build_get_participants)

    def get_sorting_algorithms(self) -> None:
        """Fetch the sorting algorithms the server offers."""
        self._issue(Operation.GET_SORTING_ALGORITHMS, builders.build_get_sorting_algorithms)

    def set_player_state(self, state: PlayerState | str) -> None:
        """Set the player state (playing, paused, inactive)."""
        self._issue(Operation.SET_PLAYER_STATE, builders.build_set_player_state, state)

    def set_player_name(self, name: str) -> None:
        """Rename the player."""
        self._issue(Operation.SET_PLAYER_NAME, builders.build_set_player_name, name)

    # -- Internals -------------------------------------------------------------

    def _issue(
        self,
        operation: Operation,
        builder: Callable[..., ApiRequest],
        *args: Any,
    ) -> None:
        """Build a request from a session snapshot and send it.

        Calls the session can't support yet fail locally instead of being
        sent; their Failure is delivered on the next event loop turn.
        """
        session = self._session.snapshot()
        endpoint = endpoint_for(operation)
        if endpoint.requires_ticket and not session.is_authenticated:
            self._fail_locally(
                operation, ErrorKind.AUTHENTICATION_FAILURE, "Not logged in to the server"
            )
            return
        if endpoint.requires_player and not session.has_player:
            self._fail_locally(operation, ErrorKind.REJECTED_REQUEST, "No player selected")
            return
        self._send(builder(self._base_url, session, *args))

    def _send(self, request: ApiRequest) -> None:
        logger.debug("Issuing %s: %s %s", request.operation.value, request.method, request.url)
        self._transport.send(request)

    def _fail_locally(self, operation: Operation, kind: ErrorKind, message: str) -> None:
        logger.warning("%s not sent: %s", operation.value, message)
        failure = Failure(operation=operation, kind=kind, message=message)
        QTimer.singleShot(0, self, lambda: self._deliver(failure))

    def _on_reply(self, reply: HttpReply) -> None:
        """Handle every completed exchange from the transport."""
        self._deliver(self._dispatcher.classify(reply))

    def _deliver(self, outcome: Outcome) -> None:
        """Apply session side effects and emit the outcome's signals."""
        if isinstance(outcome, Success):
            self._apply_success(outcome)
            getattr(self, _SIGNALS[outcome.operation][0]).emit(outcome.result)
        elif outcome.kind is ErrorKind.HARD_AUTH_FAILURE:
            logger.warning("Server rejected the session ticket")
            self._session.clear_ticket()
            self.hard_auth_failed.emit(outcome)
        elif outcome.operation is not None:
            logger.warning("%s failed: %s", outcome.operation.value, outcome)
            getattr(self, _SIGNALS[outcome.operation][1]).emit(outcome)
        self.outcome_ready.emit(outcome)

    def _apply_success(self, outcome: Success) -> None:
        if outcome.operation is Operation.AUTHENTICATE:
            self._session.set_ticket(outcome.result.ticket_hash)
            self._session.set_user_id(outcome.result.user_id)
            logger.info("Authenticated as user %s", outcome.result.user_id)
        elif outcome.operation is Operation.CREATE_PLAYER:
            self._session.set_player_id(outcome.result.player_id)
            logger.info("Created player %s", outcome.result.player_id)
