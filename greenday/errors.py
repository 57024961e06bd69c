"""Error types for GreenDay."""

from __future__ import annotations


class GreenDayError(Exception):
    """Base class for all GreenDay errors."""


class StorageUnavailable(GreenDayError, OSError):
    """Durable storage could not be read or written.

    The store keeps working in memory when this happens; changes made
    afterwards last for the session only until a later flush succeeds.
    """

    def __init__(self, message: str, path: object | None = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        msg = self.args[0] if self.args else "storage unavailable"
        if self.path is not None:
            return f"{msg} ({self.path})"
        return msg


class InvalidDateKey(GreenDayError, ValueError):
    """A value could not be turned into a calendar-day key."""
