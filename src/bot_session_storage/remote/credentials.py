"""Bearer credential ownership for the remote session store.

Classes
-------
- CredentialManager  — lazily logs in and shares one in-flight login
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


def _retrieve_exception(task: asyncio.Task[str]) -> None:
    # Marks the failure as seen when every waiter was cancelled.
    if not task.cancelled():
        task.exception()


class CredentialManager:
    """Hold a single bearer credential and obtain it on demand.

    Concurrent ``obtain()`` calls that find no credential all wait on the
    same login task, so the backend sees one login no matter how many
    sessions are active.

    Parameters
    ----------
    login:
        Coroutine function performing the login call and returning the
        new credential.  It should raise ``AuthenticationError`` on failure.
    credential:
        A previously obtained credential.  When given, the first login is
        skipped.
    """

    def __init__(
        self,
        login: Callable[[], Awaitable[str]],
        credential: str | None = None,
    ) -> None:
        self._login = login
        self._credential = credential
        self._pending: asyncio.Task[str] | None = None
        self._login_count = 0

    @property
    def credential(self) -> str | None:
        """The current credential, or None if absent."""
        return self._credential

    @property
    def login_count(self) -> int:
        """Number of login calls issued by this manager."""
        return self._login_count

    async def _run_login(self) -> str:
        self._login_count += 1
        logger.info("Logging in to remote session storage")
        try:
            credential = await self._login()
            self._credential = credential
            return credential
        finally:
            self._pending = None

    async def obtain(self) -> str:
        """Return the current credential, logging in if there is none.

        Returns
        -------
        str
            A bearer credential.

        Raises
        ------
        AuthenticationError
            If the login fails.  Every caller waiting on that login sees
            the same error, and the credential stays absent.
        """
        if self._credential is not None:
            return self._credential
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._run_login())
            self._pending.add_done_callback(_retrieve_exception)
        # A cancelled caller must not cancel the login other callers share.
        return await asyncio.shield(self._pending)

    def invalidate(self, rejected: str | None = None) -> None:
        """Discard the current credential.  Safe to call repeatedly.

        Parameters
        ----------
        rejected:
            The credential the backend refused.  When given and the current
            credential differs, it was renewed meanwhile and is kept.
        """
        if rejected is not None and rejected != self._credential:
            return
        if self._credential is not None:
            logger.info("Remote session storage rejected the credential, discarding it")
        self._credential = None

    def __repr__(self) -> str:
        state = "present" if self._credential is not None else "absent"
        return f"CredentialManager(credential={state}, logins={self._login_count})"


__all__ = ["CredentialManager"]
