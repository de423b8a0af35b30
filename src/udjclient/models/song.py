"""Song, playlist and user models exchanged with the UDJ server."""

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# Library song ids are issued by the local library and only transported
LibrarySongId = int | str


@dataclass(frozen=True, slots=True)
class LibrarySong:
    """A song from the local library, as known to the server.

    Attributes:
        id: Library song identifier.
        title: Song title.
        artist: Artist name.
        album: Album name.
        track: Track number on the album (0 if unknown).
        genre: Genre (empty string if unknown).
        duration: Length in seconds.
    """

    id: LibrarySongId
    title: str
    artist: str = ""
    album: str = ""
    track: int = 0
    genre: str = ""
    duration: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire representation used for library additions."""
        return {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "track": self.track,
            "genre": self.genre,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LibrarySong":
        """Create a song from a server JSON object."""
        return cls(
            id=data["id"],
            title=str(data.get("title", "")),
            artist=str(data.get("artist", "")),
            album=str(data.get("album", "")),
            track=int(data.get("track") or 0),
            genre=str(data.get("genre", "")),
            duration=int(data.get("duration") or 0),
        )


@dataclass(frozen=True, slots=True)
class User:
    """A UDJ user (player owner or participant)."""

    id: int | str
    username: str
    first_name: str = ""
    last_name: str = ""

    @property
    def display_name(self) -> str:
        """Return full name, or username as fallback."""
        full = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full or self.username

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        """Create a user from a server JSON object."""
        return cls(
            id=data["id"],
            username=str(data.get("username", "")),
            first_name=str(data.get("first_name", "")),
            last_name=str(data.get("last_name", "")),
        )


@dataclass(frozen=True, slots=True)
class PlaylistEntry:
    """A song queued on the active playlist with its votes.

    Attributes:
        song: The queued library song.
        adder: User who added the song (None if not reported).
        upvoters: Users who voted the song up.
        downvoters: Users who voted the song down.
        time_added: Server timestamp string of when the song was queued.
    """

    song: LibrarySong
    adder: User | None = None
    upvoters: list[User] = field(default_factory=list)
    downvoters: list[User] = field(default_factory=list)
    time_added: str = ""

    @property
    def score(self) -> int:
        """Return upvotes minus downvotes."""
        return len(self.upvoters) - len(self.downvoters)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlaylistEntry":
        """Create an entry from a server JSON object."""
        adder_data = data.get("adder")
        return cls(
            song=LibrarySong.from_dict(data["song"]),
            adder=User.from_dict(adder_data) if adder_data else None,
            upvoters=[User.from_dict(u) for u in data.get("upvoters", [])],
            downvoters=[User.from_dict(u) for u in data.get("downvoters", [])],
            time_added=str(data.get("time_added", "")),
        )


@dataclass(frozen=True, slots=True)
class ActivePlaylist:
    """Snapshot of a player's active playlist.

    Attributes:
        current_song: The song currently playing, or None.
        entries: Queued songs in play order.
        volume: Player volume (0-10).
        state: Player state string ("playing", "paused", "inactive").
    """

    current_song: PlaylistEntry | None = None
    entries: list[PlaylistEntry] = field(default_factory=list)
    volume: int = 0
    state: str = ""

    @property
    def song_ids(self) -> list[LibrarySongId]:
        """Return the queued library song ids in order."""
        return [e.song.id for e in self.entries]

    @property
    def is_empty(self) -> bool:
        """Return True if nothing is playing or queued."""
        return self.current_song is None and not self.entries

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActivePlaylist":
        """Create a playlist snapshot from the server JSON object.

        The server reports an empty object for ``current_song`` when nothing
        is playing.
        """
        current = data.get("current_song")
        return cls(
            current_song=PlaylistEntry.from_dict(current) if current else None,
            entries=[PlaylistEntry.from_dict(e) for e in data.get("active_playlist", [])],
            volume=int(data.get("volume") or 0),
            state=str(data.get("state", "")),
        )
