"""Data models for the UDJ server connection."""

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
from udjclient.models.player import PlayerLocation, PlayerState, SortingAlgorithm
from udjclient.models.song import ActivePlaylist, LibrarySong, PlaylistEntry, User

__all__ = [
    "ActivePlaylist",
    "Authenticated",
    "CurrentSongCleared",
    "CurrentSongSet",
    "ErrorKind",
    "Failure",
    "LibrarySong",
    "LibrarySynced",
    "LocationSet",
    "Operation",
    "Outcome",
    "ParticipantList",
    "PasswordRemoved",
    "PasswordSet",
    "PlayerCreated",
    "PlayerLocation",
    "PlayerNameChanged",
    "PlayerState",
    "PlayerStateSet",
    "PlaylistEntry",
    "PlaylistModified",
    "SortingAlgorithm",
    "SortingAlgorithmList",
    "Success",
    "User",
    "VolumeSet",
]
