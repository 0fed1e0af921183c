"""Exponential backoff for calls to the remote session store.

A call is retried for as long as it fails transiently: the server answers
with a 5xx status, or no response arrives at all (connection refused,
timeout, broken stream).  The delay starts small, doubles after every
transient failure and is clamped to a ceiling.  There is no attempt limit;
callers that need a deadline wrap the call in ``asyncio.wait_for``.

Each call walks an explicit state machine::

    ATTEMPTING --transient--> WAITING --slept--> ATTEMPTING --ok--> DONE

Classes
-------
- BackoffPolicy  — delay schedule (initial delay, multiplier, ceiling)
- RetryPhase     — states of a single retried call
- RetryState     — per-call state machine
- BackoffRetrier — runs a network call under a policy
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

import httpx

from bot_session_storage.config import (
    DEFAULT_INITIAL_BACKOFF_SECONDS,
    DEFAULT_MAX_BACKOFF_SECONDS,
)
from bot_session_storage.exceptions import TransientNetworkFailure

logger = logging.getLogger(__name__)

# Failures where no usable response arrived.  Other transport errors
# (unsupported scheme, invalid request) are caller mistakes and propagate.
_RETRYABLE_TRANSPORT_ERRORS = (
    httpx.NetworkError,
    httpx.TimeoutException,
    httpx.RemoteProtocolError,
)


def is_transient_status(status: int) -> bool:
    """Return True for statuses in the server-error class."""
    return status >= 500


@dataclass(frozen=True)
class BackoffPolicy:
    """Delay schedule for transient failures, in seconds."""

    initial_delay: float = DEFAULT_INITIAL_BACKOFF_SECONDS
    max_delay: float = DEFAULT_MAX_BACKOFF_SECONDS
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.initial_delay <= 0:
            raise ValueError("initial_delay must be positive")
        if self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be >= initial_delay")
        if self.multiplier < 1:
            raise ValueError("multiplier must be >= 1")

    def first_delay(self) -> float:
        return min(self.initial_delay, self.max_delay)

    def next_delay(self, current: float) -> float:
        return min(current * self.multiplier, self.max_delay)


class RetryPhase(str, Enum):
    """States a retried call moves through."""

    PENDING = "pending"
    ATTEMPTING = "attempting"
    WAITING = "waiting"
    DONE = "done"


@dataclass
class RetryState:
    """State machine for one retried call.

    Parameters
    ----------
    policy:
        Delay schedule to follow.
    """

    policy: BackoffPolicy
    phase: RetryPhase = RetryPhase.PENDING
    attempt: int = 0
    delay: float = field(default=0.0)
    last_failure: TransientNetworkFailure | None = None

    def __post_init__(self) -> None:
        self.delay = self.policy.first_delay()

    def _require(self, *phases: RetryPhase) -> None:
        if self.phase not in phases:
            allowed = ", ".join(p.value for p in phases)
            raise RuntimeError(
                f"Invalid retry transition from {self.phase.value!r} (expected {allowed})"
            )

    def begin_attempt(self) -> None:
        """PENDING/WAITING -> ATTEMPTING."""
        self._require(RetryPhase.PENDING, RetryPhase.WAITING)
        self.phase = RetryPhase.ATTEMPTING
        self.attempt += 1

    def record_transient(self, failure: TransientNetworkFailure) -> float:
        """ATTEMPTING -> WAITING.

        Returns
        -------
        float
            Seconds to wait before the next attempt.  The delay for the
            attempt after that is advanced and clamped.
        """
        self._require(RetryPhase.ATTEMPTING)
        self.phase = RetryPhase.WAITING
        self.last_failure = failure
        wait = self.delay
        self.delay = self.policy.next_delay(self.delay)
        return wait

    def finish(self) -> None:
        """ATTEMPTING -> DONE."""
        self._require(RetryPhase.ATTEMPTING)
        self.phase = RetryPhase.DONE


class BackoffRetrier:
    """Retry a network call until it stops failing transiently.

    Parameters
    ----------
    policy:
        Delay schedule.  Defaults to ``BackoffPolicy()`` (10 ms doubling
        up to one hour).
    sleep:
        Coroutine function used to wait between attempts.  Defaults to
        ``asyncio.sleep``; tests inject a recorder.
    on_transition:
        Optional callback invoked with the ``RetryState`` after every
        state change.
    """

    def __init__(
        self,
        policy: BackoffPolicy | None = None,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        on_transition: Callable[[RetryState], None] | None = None,
    ) -> None:
        self.policy = policy or BackoffPolicy()
        self._sleep = sleep
        self._on_transition = on_transition

    def _notify(self, state: RetryState) -> None:
        if self._on_transition is not None:
            self._on_transition(state)

    async def _attempt(self, operation: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        """Run ``operation`` once, raising ``TransientNetworkFailure`` if it must be retried."""
        try:
            response = await operation()
        except _RETRYABLE_TRANSPORT_ERRORS as exc:
            raise TransientNetworkFailure(
                f"{type(exc).__name__} talking to remote session storage: {exc}"
            ) from exc
        if is_transient_status(response.status_code):
            raise TransientNetworkFailure(
                f"{response.status_code} in remote session storage",
                status=response.status_code,
            )
        return response

    async def run(self, operation: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        """Invoke ``operation`` until it returns a non-transient response.

        Parameters
        ----------
        operation:
            Zero-argument coroutine function performing one HTTP request.

        Returns
        -------
        httpx.Response
            The first response whose status is below 500.
        """
        state = RetryState(self.policy)
        while True:
            state.begin_attempt()
            self._notify(state)
            try:
                response = await self._attempt(operation)
            except TransientNetworkFailure as failure:
                wait = state.record_transient(failure)
                self._notify(state)
                logger.warning(
                    "%s (attempt %d), retrying in %.3fs", failure, state.attempt, wait
                )
                await self._sleep(wait)
                continue
            state.finish()
            self._notify(state)
            return response

    def __repr__(self) -> str:
        return f"BackoffRetrier(policy={self.policy!r})"


__all__ = [
    "BackoffPolicy",
    "BackoffRetrier",
    "RetryPhase",
    "RetryState",
    "is_transient_status",
]
