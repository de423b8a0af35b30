"""Configuration manager using QSettings for persistent storage."""

import logging

from PySide6.QtCore import QSettings

from udjclient.api.endpoints import DEFAULT_BASE_URL, normalize_base_url
from udjclient.api.transport import DEFAULT_TIMEOUT_MS

logger = logging.getLogger(__name__)

# Server
_KEY_BASE_URL = "server/base_url"
_KEY_TIMEOUT_MS = "server/timeout_ms"

# Account
_KEY_USERNAME = "account/username"

# Player
_KEY_PLAYER_ID = "player/id"
_KEY_PLAYER_NAME = "player/name"

_MIN_TIMEOUT_MS = 1_000
_MAX_TIMEOUT_MS = 120_000


class ConfigManager:
    """Wrapper around QSettings for type-safe config access.

    QSettings stores config in platform-specific locations:
    - Windows: HKEY_CURRENT_USER\\Software\\UDJ\\UDJ
    - macOS: ~/Library/Preferences/com.UDJ.UDJ.plist
    - Linux: ~/.config/UDJ/UDJ.conf

    The ticket hash is never persisted; a new session always logs in again.

    Example:
        config = ConfigManager()
        connection = ServerConnection(config.get_base_url(), config.get_timeout_ms())
    """

    def __init__(self, organization: str = "UDJ", application: str = "UDJ") -> None:
        """Initialize the config manager.

        Args:
            organization: Organization name for QSettings.
            application: Application name for QSettings.
        """
        self._settings = QSettings(organization, application)

    @property
    def settings(self) -> QSettings:
        """Return the underlying QSettings instance."""
        return self._settings

    # -- Server settings -------------------------------------------------------

    def get_base_url(self) -> str:
        """Return the service root URL (always ending in a slash)."""
        value = self._settings.value(_KEY_BASE_URL, DEFAULT_BASE_URL, str)
        return normalize_base_url(str(value)) if value else DEFAULT_BASE_URL

    def set_base_url(self, base_url: str) -> None:
        """Set the service root URL.

        Args:
            base_url: URL such as ``https://host:4897/udj/0_6/``. Empty
                restores the default.
        """
        if not base_url:
            self._settings.remove(_KEY_BASE_URL)
            return
        self._settings.setValue(_KEY_BASE_URL, normalize_base_url(base_url))

    def get_timeout_ms(self) -> int:
        """Return the request timeout in milliseconds.

        Returns:
            Timeout clamped to 1000-120000 (default 30000).
        """
        value = self._settings.value(_KEY_TIMEOUT_MS, DEFAULT_TIMEOUT_MS, int)
        try:
            timeout = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid timeout setting: %r", value)
            return DEFAULT_TIMEOUT_MS
        return max(_MIN_TIMEOUT_MS, min(_MAX_TIMEOUT_MS, timeout))

    def set_timeout_ms(self, timeout_ms: int) -> None:
        """Set the request timeout.

        Args:
            timeout_ms: Timeout in milliseconds (1000-120000).
        """
        self._settings.setValue(_KEY_TIMEOUT_MS, max(_MIN_TIMEOUT_MS, min(_MAX_TIMEOUT_MS, timeout_ms)))

    # -- Account settings ------------------------------------------------------

    def get_username(self) -> str:
        """Return the last username used to log in, or empty string."""
        value = self._settings.value(_KEY_USERNAME, "", str)
        return str(value) if value else ""

    def set_username(self, username: str) -> None:
        """Remember the username for the next login."""
        self._settings.setValue(_KEY_USERNAME, username)

    # -- Player settings -------------------------------------------------------

    def get_player_id(self) -> str | None:
        """Return the id of the player this client last controlled.

        Returns:
            Player id string, or None if no player was created yet.
        """
        value = self._settings.value(_KEY_PLAYER_ID, None, str)
        return str(value) if value else None

    def set_player_id(self, player_id: int | str) -> None:
        """Remember the controlled player id."""
        self._settings.setValue(_KEY_PLAYER_ID, str(player_id))

    def get_player_name(self) -> str:
        """Return the controlled player's name, or empty string."""
        value = self._settings.value(_KEY_PLAYER_NAME, "", str)
        return str(value) if value else ""

    def set_player_name(self, name: str) -> None:
        """Remember the controlled player's name."""
        self._settings.setValue(_KEY_PLAYER_NAME, name)

    def forget_player(self) -> None:
        """Remove the stored player id and name."""
        self._settings.remove(_KEY_PLAYER_ID)
        self._settings.remove(_KEY_PLAYER_NAME)

    # -- General settings ------------------------------------------------------

    def clear(self) -> None:
        """Clear all settings (useful for testing or reset)."""
        self._settings.clear()

    def sync(self) -> None:
        """Force settings to be written to disk."""
        self._settings.sync()
