"""Configuration models.

Classes
-------
- RemoteStorageOptions  — validated options for ``RemoteStorageClient``
"""
from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_ROOT_URL = "https://grammy-free-session.deno.dev/api"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_INITIAL_BACKOFF_SECONDS = 0.01
DEFAULT_MAX_BACKOFF_SECONDS = 60.0 * 60.0


def normalize_root_url(value: str) -> str:
    """Strip surrounding whitespace and trailing slashes from a root URL.

    Raises
    ------
    ValueError
        If ``value`` is not an http(s) URL.
    """
    value = value.strip().rstrip("/")
    if not value.startswith(("http://", "https://")):
        raise ValueError(f"root_url must be an http(s) URL, got {value!r}")
    return value


class RemoteStorageOptions(BaseModel):
    """Options for connecting to the remote session store.

    Parameters
    ----------
    root_url:
        Root URL of the storage backend.  Override it to use a self-hosted
        backend.  A trailing slash is stripped.
    jwt:
        A storage credential obtained earlier (see
        ``RemoteStorageClient.get_token``).  When set, the first login call
        is skipped.  The client still logs in again if the backend rejects
        it, so the bot token is required regardless.
    timeout:
        Per-request HTTP timeout in seconds.  A timed-out request counts
        as a transient failure and is retried.
    initial_backoff:
        Delay in seconds before the first retry of a transient failure.
    max_backoff:
        Upper bound in seconds for the delay between retries.
    """

    root_url: str = DEFAULT_ROOT_URL
    jwt: str | None = None
    timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    initial_backoff: float = Field(default=DEFAULT_INITIAL_BACKOFF_SECONDS, gt=0)
    max_backoff: float = Field(default=DEFAULT_MAX_BACKOFF_SECONDS, gt=0)

    model_config = {"frozen": True}

    @field_validator("root_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return normalize_root_url(value)

    @model_validator(mode="after")
    def _check_backoff_bounds(self) -> RemoteStorageOptions:
        if self.max_backoff < self.initial_backoff:
            raise ValueError(
                f"max_backoff ({self.max_backoff}) must be >= "
                f"initial_backoff ({self.initial_backoff})"
            )
        return self


__all__ = [
    "DEFAULT_INITIAL_BACKOFF_SECONDS",
    "DEFAULT_MAX_BACKOFF_SECONDS",
    "DEFAULT_ROOT_URL",
    "DEFAULT_TIMEOUT_SECONDS",
    "RemoteStorageOptions",
    "normalize_root_url",
]
