"""HTTP client for the hosted multi-tenant session store.

The remote store keeps session values per bot.  A bot logs in with its bot
token and receives a short-lived bearer credential, which authorizes
``GET``/``POST``/``DELETE`` requests on ``{root}/session/{key}``.

``RemoteStorageClient`` hides all of that behind the ``StorageAdapter``
contract:

- the credential is obtained lazily and shared by concurrent calls;
- a 401 discards the credential and replays the operation once after a
  fresh login; a second 401 is an ``AuthenticationError``;
- 5xx responses and connection failures are retried with exponential
  backoff and never reach the caller;
- a 404 on read means "no session stored" and yields ``None``.

Classes
-------
- CallOutcome          — tagged result of one authorized attempt
- RemoteStorageClient  — ``StorageAdapter`` for the remote store
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal
from urllib.parse import quote

import httpx
from pydantic import BaseModel, StrictStr, ValidationError

from bot_session_storage.config import (
    DEFAULT_ROOT_URL,
    DEFAULT_TIMEOUT_SECONDS,
    RemoteStorageOptions,
    normalize_root_url,
)
from bot_session_storage.exceptions import AuthenticationError, RemoteStorageError
from bot_session_storage.remote.credentials import CredentialManager
from bot_session_storage.remote.retry import BackoffPolicy, BackoffRetrier
from bot_session_storage.serialization import JsonSerializer, ValueSerializer
from bot_session_storage.storage.base import StorageAdapter

logger = logging.getLogger(__name__)

Method = Literal["GET", "POST", "DELETE"]

_MAX_AUTH_ATTEMPTS = 2


class _LoginResponse(BaseModel):
    token: StrictStr


class CallOutcome(str, Enum):
    """Classification of one authorized request."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"


@dataclass(frozen=True)
class _CallResult:
    outcome: CallOutcome
    body: str | None = None
    credential: str | None = None


def _error_message(response: httpx.Response) -> str:
    """Best-effort error description from a failed response body."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict) and "error" in payload:
        return str(payload["error"])
    return str(payload)


class RemoteStorageClient(StorageAdapter):
    """Storage adapter backed by the remote session store.

    Parameters
    ----------
    bot_token:
        The bot token used to log in.  Required even when ``jwt`` is
        supplied, because the credential is renewed automatically.
    root_url:
        Root URL of the storage backend.
    jwt:
        A previously obtained credential that skips the first login.
    serializer:
        Codec for session values.  Defaults to ``JsonSerializer``.
    retrier:
        Backoff retrier for transient failures.  Defaults to a retrier with
        the standard 10 ms .. 1 h schedule.
    http_client:
        An ``httpx.AsyncClient`` to send requests with.  When supplied, the
        caller owns it and ``aclose`` leaves it open.
    timeout:
        Per-request timeout in seconds for the default HTTP client.

    Raises
    ------
    ValueError
        If ``bot_token`` is empty or ``root_url`` is not an http(s) URL.
    """

    def __init__(
        self,
        bot_token: str,
        *,
        root_url: str = DEFAULT_ROOT_URL,
        jwt: str | None = None,
        serializer: ValueSerializer | None = None,
        retrier: BackoffRetrier | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if not bot_token:
            raise ValueError("bot_token must be a non-empty string")
        self._bot_token = bot_token
        self._root_url = normalize_root_url(root_url)
        self._serializer = serializer or JsonSerializer()
        self._retrier = retrier or BackoffRetrier()
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._credentials = CredentialManager(self._login, credential=jwt)

    @classmethod
    def from_options(
        cls,
        bot_token: str,
        options: RemoteStorageOptions | None = None,
        **kwargs: Any,
    ) -> RemoteStorageClient:
        """Build a client from validated ``RemoteStorageOptions``.

        Extra keyword arguments (``serializer``, ``http_client``) are
        passed through to the constructor.
        """
        options = options or RemoteStorageOptions()
        policy = BackoffPolicy(
            initial_delay=options.initial_backoff, max_delay=options.max_backoff
        )
        return cls(
            bot_token,
            root_url=options.root_url,
            jwt=options.jwt,
            retrier=BackoffRetrier(policy),
            timeout=options.timeout,
            **kwargs,
        )

    @property
    def root_url(self) -> str:
        return self._root_url

    @property
    def credentials(self) -> CredentialManager:
        """The credential manager owned by this client."""
        return self._credentials

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    async def _login(self) -> str:
        url = f"{self._root_url}/login"
        response = await self._retrier.run(
            lambda: self._http.post(url, json={"token": self._bot_token})
        )
        if not response.is_success:
            raise AuthenticationError(
                f"Cannot use remote session storage, login rejected "
                f"({response.status_code}: {_error_message(response)})",
                status=response.status_code,
            )
        try:
            return _LoginResponse.model_validate_json(response.content).token
        except ValidationError as exc:
            raise AuthenticationError(
                "Cannot use remote session storage, login response carries no valid token",
                status=response.status_code,
            ) from exc

    async def get_token(self) -> str:
        """Return the storage credential, logging in if necessary.

        Useful in serverless deployments: persist the returned credential
        and pass it back as ``jwt`` to skip the login on cold starts.
        """
        return await self._credentials.obtain()

    # ------------------------------------------------------------------
    # Authorized calls
    # ------------------------------------------------------------------

    def _session_url(self, key: str) -> str:
        return f"{self._root_url}/session/{quote(key, safe='')}"

    async def _attempt(self, method: Method, key: str, body: str | None) -> _CallResult:
        """Send one authorized request and classify the response."""
        credential = await self._credentials.obtain()
        url = self._session_url(key)
        headers = {"Authorization": f"Bearer {credential}"}
        response = await self._retrier.run(
            lambda: self._http.request(method, url, content=body, headers=headers)
        )
        status = response.status_code
        if status == 401:
            return _CallResult(CallOutcome.UNAUTHORIZED, credential=credential)
        if status == 404:
            return _CallResult(CallOutcome.NOT_FOUND)
        if response.is_success:
            return _CallResult(CallOutcome.SUCCESS, response.text if method == "GET" else None)
        raise RemoteStorageError(status, _error_message(response))

    async def _call(self, method: Method, key: str, body: str | None = None) -> _CallResult:
        """Run ``method`` on ``key``, re-authenticating once on 401."""
        for attempt in range(1, _MAX_AUTH_ATTEMPTS + 1):
            result = await self._attempt(method, key, body)
            if result.outcome is not CallOutcome.UNAUTHORIZED:
                return result
            self._credentials.invalidate(result.credential)
            logger.info(
                "%s %r unauthorized (attempt %d of %d)", method, key, attempt, _MAX_AUTH_ATTEMPTS
            )
        raise AuthenticationError(
            f"Remote session storage rejected a fresh credential for {method} {key!r}",
            status=401,
        )

    # ------------------------------------------------------------------
    # StorageAdapter interface
    # ------------------------------------------------------------------

    async def read(self, key: str) -> Any | None:
        result = await self._call("GET", key)
        if result.outcome is CallOutcome.NOT_FOUND or result.body is None:
            return None
        return self._serializer.loads(result.body)

    async def write(self, key: str, value: Any) -> None:
        await self._call("POST", key, self._serializer.dumps(value))

    async def delete(self, key: str) -> None:
        await self._call("DELETE", key)

    # ------------------------------------------------------------------
    # Resource management
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> RemoteStorageClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"RemoteStorageClient(root_url={self._root_url!r})"


__all__ = ["CallOutcome", "RemoteStorageClient"]
