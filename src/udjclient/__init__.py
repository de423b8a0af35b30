"""Client for the UDJ collaborative music player service."""

__version__ = "0.6.0"
