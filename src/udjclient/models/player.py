"""Player-related models: location, state and sorting algorithms."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class PlayerState(Enum):
    """Playback state of a player as understood by the server."""

    PLAYING = "playing"
    PAUSED = "paused"
    INACTIVE = "inactive"

    @classmethod
    def from_string(cls, value: str) -> "PlayerState":
        """Parse a state string (case-insensitive).

        Raises:
            ValueError: If the string is not a known state.
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown player state: {value!r}") from None


@dataclass(frozen=True, slots=True)
class PlayerLocation:
    """Street address of a player."""

    address: str = ""
    city: str = ""
    state: str = ""
    zipcode: str = ""

    def to_dict(self) -> dict[str, str]:
        """Convert to JSON-serializable dict."""
        return {
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zipcode": self.zipcode,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlayerLocation":
        """Create a location from a JSON dict."""
        return cls(
            address=str(data.get("address", "")),
            city=str(data.get("city", "")),
            state=str(data.get("state", "")),
            zipcode=str(data.get("zipcode", "")),
        )


@dataclass(frozen=True, slots=True)
class SortingAlgorithm:
    """A playlist sorting algorithm offered by the server."""

    id: int | str
    name: str
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SortingAlgorithm":
        """Create from a server JSON object."""
        return cls(
            id=data["id"],
            name=str(data.get("name", "")),
            description=str(data.get("description", "")),
        )
