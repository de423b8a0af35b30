"""Core application state shared by the server connection and its users.

Classes:
    SessionState: Mutable ticket/user/player holder.
    Session: Immutable snapshot attached to each request.
    ConfigManager: QSettings wrapper for configuration.
"""

from udjclient.core.config import ConfigManager
from udjclient.core.session import Session, SessionState

__all__ = ["ConfigManager", "Session", "SessionState"]
