"""Session state attached to every authenticated request.

The mutable SessionState is owned by the server connection. Requests never
read it directly: they are built from an immutable Session snapshot taken at
issue time, so a session change can't leak into a request half-way through
construction.
"""

import logging
from dataclasses import dataclass, replace

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Session:
    """Immutable snapshot of the session.

    Attributes:
        ticket_hash: Opaque authentication token (empty if not logged in).
        user_id: Identifier issued at authentication, or None.
        player_id: Identifier of the controlled player, or None.
    """

    ticket_hash: bytes = b""
    user_id: int | str | None = None
    player_id: int | str | None = None

    @property
    def is_authenticated(self) -> bool:
        """Return True if a ticket hash is present."""
        return bool(self.ticket_hash)

    @property
    def has_player(self) -> bool:
        """Return True if a player id is set."""
        return self.player_id is not None and self.player_id != ""

    @property
    def ticket_header_value(self) -> str:
        """Return the ticket hash as a header value."""
        return self.ticket_hash.decode("latin-1")


class SessionState:
    """Mutable holder for the current session.

    Setters are unconditional overwrites. The state is used from the owning
    thread only and is therefore not locked.
    """

    def __init__(self, session: Session | None = None) -> None:
        """Initialize with an optional starting session."""
        self._session = session or Session()

    def snapshot(self) -> Session:
        """Return the current immutable session snapshot."""
        return self._session

    @property
    def ticket_hash(self) -> bytes:
        """Return the current ticket hash."""
        return self._session.ticket_hash

    @property
    def user_id(self) -> int | str | None:
        """Return the current user id."""
        return self._session.user_id

    @property
    def player_id(self) -> int | str | None:
        """Return the current player id."""
        return self._session.player_id

    def set_ticket(self, ticket_hash: bytes | str) -> None:
        """Set the ticket hash used for authenticated requests."""
        if isinstance(ticket_hash, str):
            ticket_hash = ticket_hash.encode("latin-1")
        self._session = replace(self._session, ticket_hash=ticket_hash)

    def set_user_id(self, user_id: int | str | None) -> None:
        """Set the user id issued at authentication."""
        self._session = replace(self._session, user_id=user_id)

    def set_player_id(self, player_id: int | str | None) -> None:
        """Set the player this client controls."""
        self._session = replace(self._session, player_id=player_id)

    def clear_ticket(self) -> None:
        """Forget the ticket hash (after the server rejected it)."""
        if self._session.ticket_hash:
            logger.info("Clearing invalidated ticket for user %s", self._session.user_id)
        self._session = replace(self._session, ticket_hash=b"")

    def reset(self) -> None:
        """Forget everything."""
        self._session = Session()
