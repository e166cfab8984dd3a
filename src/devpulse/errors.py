"""Custom exception types for the DevPulse analytics core."""

from __future__ import annotations

from typing import Optional


class DevPulseError(Exception):
    """Base exception for all recoverable DevPulse errors."""


class ConfigurationError(DevPulseError):
    """Raised when runtime configuration values are missing or invalid."""


class InvalidWindowError(ConfigurationError):
    """Raised when a window size (days, weeks, months, top-N) is non-positive or absurd."""


class AuthenticationError(DevPulseError):
    """Raised when the dashboard API token is unavailable."""


class MalformedRecordError(DevPulseError):
    """Raised when a record is missing a required field or violates a data invariant."""


class FetchFailure(DevPulseError):
    """Raised when the dashboard API request fails or returns an unexpected response.

    The analytics core never interprets this error; it only carries the
    human-readable message and the HTTP status code (``None`` for transport
    failures) up to the caller.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
