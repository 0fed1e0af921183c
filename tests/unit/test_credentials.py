"""Unit tests for bot_session_storage.remote.credentials.CredentialManager."""
from __future__ import annotations

import asyncio

import pytest

from bot_session_storage.exceptions import AuthenticationError
from bot_session_storage.remote.credentials import CredentialManager


class _GatedLogin:
    """Login coroutine that blocks until ``release`` is set."""

    def __init__(self, *, fail_first: bool = False) -> None:
        self.release = asyncio.Event()
        self.calls = 0
        self._fail_first = fail_first

    async def __call__(self) -> str:
        self.calls += 1
        await self.release.wait()
        if self._fail_first and self.calls == 1:
            raise AuthenticationError("login rejected (401: invalid bot token)", status=401)
        return f"token-{self.calls}"


# ---------------------------------------------------------------------------
# Basic behaviour
# ---------------------------------------------------------------------------


class TestCredentialManagerBasics:
    @pytest.mark.asyncio
    async def test_obtain_logs_in_once_and_caches(self) -> None:
        login = _GatedLogin()
        login.release.set()
        manager = CredentialManager(login)

        assert await manager.obtain() == "token-1"
        assert await manager.obtain() == "token-1"
        assert login.calls == 1
        assert manager.login_count == 1
        assert manager.credential == "token-1"

    @pytest.mark.asyncio
    async def test_preset_credential_skips_login(self) -> None:
        login = _GatedLogin()
        manager = CredentialManager(login, credential="preset")
        assert await manager.obtain() == "preset"
        assert login.calls == 0

    @pytest.mark.asyncio
    async def test_invalidate_forces_new_login(self) -> None:
        login = _GatedLogin()
        login.release.set()
        manager = CredentialManager(login)
        await manager.obtain()

        manager.invalidate()
        assert manager.credential is None
        assert await manager.obtain() == "token-2"
        assert manager.login_count == 2

    @pytest.mark.asyncio
    async def test_invalidate_keeps_renewed_credential(self) -> None:
        manager = CredentialManager(_GatedLogin(), credential="renewed")
        manager.invalidate("expired")
        assert manager.credential == "renewed"
        assert await manager.obtain() == "renewed"
        assert manager.login_count == 0

    def test_invalidate_discards_rejected_credential(self) -> None:
        manager = CredentialManager(_GatedLogin(), credential="expired")
        manager.invalidate("expired")
        assert manager.credential is None

    def test_invalidate_is_idempotent(self) -> None:
        manager = CredentialManager(_GatedLogin())
        manager.invalidate()
        manager.invalidate()
        assert manager.credential is None

    def test_repr_hides_credential(self) -> None:
        manager = CredentialManager(_GatedLogin(), credential="secret-jwt")
        text = repr(manager)
        assert "secret-jwt" not in text
        assert "present" in text


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------


class TestCredentialManagerConcurrency:
    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_login(self) -> None:
        login = _GatedLogin()
        manager = CredentialManager(login)

        waiters = [asyncio.ensure_future(manager.obtain()) for _ in range(10)]
        await asyncio.sleep(0)
        login.release.set()
        results = await asyncio.gather(*waiters)

        assert results == ["token-1"] * 10
        assert login.calls == 1

    @pytest.mark.asyncio
    async def test_failure_reaches_every_waiter(self) -> None:
        login = _GatedLogin(fail_first=True)
        manager = CredentialManager(login)

        waiters = [asyncio.ensure_future(manager.obtain()) for _ in range(3)]
        await asyncio.sleep(0)
        login.release.set()
        results = await asyncio.gather(*waiters, return_exceptions=True)

        assert all(isinstance(r, AuthenticationError) for r in results)
        assert login.calls == 1
        assert manager.credential is None

    @pytest.mark.asyncio
    async def test_login_retried_after_failure(self) -> None:
        login = _GatedLogin(fail_first=True)
        login.release.set()
        manager = CredentialManager(login)

        with pytest.raises(AuthenticationError):
            await manager.obtain()
        assert await manager.obtain() == "token-2"

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_shared_login(self) -> None:
        login = _GatedLogin()
        manager = CredentialManager(login)

        impatient = asyncio.ensure_future(manager.obtain())
        patient = asyncio.ensure_future(manager.obtain())
        await asyncio.sleep(0)
        impatient.cancel()
        with pytest.raises(asyncio.CancelledError):
            await impatient

        login.release.set()
        assert await patient == "token-1"
        assert login.calls == 1
        assert manager.credential == "token-1"
