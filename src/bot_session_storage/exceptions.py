"""Exception hierarchy for bot-session-storage.

Classes
-------
- SessionStorageError      — base class for every error raised by this package
- AuthenticationError      — login rejected or credential rejected after re-login
- RemoteStorageError       — non-success response from the remote store
- SerializationError       — a session value could not be encoded or decoded
- TransientNetworkFailure  — retryable failure, absorbed by the backoff retrier
"""
from __future__ import annotations


class SessionStorageError(Exception):
    """Base class for all storage errors."""


class AuthenticationError(SessionStorageError):
    """Raised when the remote store refuses to authenticate this bot.

    Parameters
    ----------
    message:
        Human-readable description of the failure.
    status:
        HTTP status of the rejecting response, if there was one.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


class RemoteStorageError(SessionStorageError):
    """Raised for a remote response that is neither success, 401 nor 404."""

    def __init__(self, status: int, message: str) -> None:
        self.status = status
        self.message = message
        super().__init__(f"{status}: {message}")


class SerializationError(SessionStorageError, ValueError):
    """Raised when a session value cannot be encoded or decoded."""


class TransientNetworkFailure(SessionStorageError):
    """A server-side (5xx) or connection-level failure that should be retried.

    Only the backoff retrier raises and handles this; callers never see it.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


__all__ = [
    "AuthenticationError",
    "RemoteStorageError",
    "SerializationError",
    "SessionStorageError",
    "TransientNetworkFailure",
]
