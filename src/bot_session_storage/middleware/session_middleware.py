"""Session auto-load / auto-save middleware.

Wraps any ``StorageAdapter`` with the hooks a bot's update pipeline needs:
load the session value before handling an update, persist it afterwards.

Classes
-------
- SessionBox         — per-request handle holding one loaded session value
- SessionMiddleware  — before/after request hooks for session management
"""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from bot_session_storage.storage.base import StorageAdapter

logger = logging.getLogger(__name__)

_UNSET: Any = object()


@dataclass
class SessionBox:
    """Holds the session value for the duration of one request.

    Assign to ``value`` to replace the session; set it to ``None`` to
    delete it when the request finishes.
    """

    key: str
    value: Any = None


class SessionMiddleware:
    """Auto-load and auto-save session values around each request cycle.

    The middleware is framework-agnostic: callers invoke ``before_request``
    and ``after_request`` at the right points of their own pipeline, use the
    ``load``/``save`` handle pair, or use the ``session`` context manager
    which does both.

    Concurrent requests for the *same* key are not serialized.  Each request
    keeps its own ``SessionBox``; the last one saved wins.

    Parameters
    ----------
    storage:
        The adapter that persists session values.
    initial:
        Optional factory producing the value for a key that has no stored
        session yet.  Called once per such request, so mutable defaults are
        never shared.
    """

    def __init__(
        self,
        storage: StorageAdapter,
        initial: Callable[[], Any] | None = None,
    ) -> None:
        self._storage = storage
        self._initial = initial
        # In-flight boxes per key, oldest first.
        self._active: dict[str, list[SessionBox]] = {}

    @property
    def storage(self) -> StorageAdapter:
        return self._storage

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _release(self, box: SessionBox) -> bool:
        """Remove ``box`` from the in-flight boxes; return False if it was not there."""
        boxes = self._active.get(box.key, [])
        for index, candidate in enumerate(boxes):
            if candidate is box:
                del boxes[index]
                if not boxes:
                    del self._active[box.key]
                return True
        return False

    # ------------------------------------------------------------------
    # Handle API
    # ------------------------------------------------------------------

    async def load(self, key: str) -> SessionBox:
        """Load the session for ``key`` into a new per-request box.

        Returns
        -------
        SessionBox
            Holds the stored value, else ``initial()`` if a factory was
            given, else ``None``.  Pass it to ``save`` or ``discard``.
        """
        value = await self._storage.read(key)
        if value is None and self._initial is not None:
            value = self._initial()
            logger.debug("SessionMiddleware: initialised session %r", key)
        else:
            logger.debug("SessionMiddleware: loaded session %r", key)
        box = SessionBox(key=key, value=value)
        self._active.setdefault(key, []).append(box)
        return box

    async def save(self, box: SessionBox) -> None:
        """Persist ``box.value``; ``None`` deletes the stored session.

        Raises
        ------
        KeyError
            If ``box`` was already saved or discarded.
        """
        if not self._release(box):
            raise KeyError(f"Session box for {box.key!r} is not active.")
        if box.value is None:
            await self._storage.delete(box.key)
            logger.debug("SessionMiddleware: deleted session %r", box.key)
        else:
            await self._storage.write(box.key, box.value)
            logger.debug("SessionMiddleware: saved session %r", box.key)

    def discard(self, box: SessionBox) -> None:
        """Forget ``box`` without saving it."""
        self._release(box)

    # ------------------------------------------------------------------
    # Key-based hooks
    # ------------------------------------------------------------------

    async def before_request(self, key: str) -> Any | None:
        """Load the session value for ``key``.

        Parameters
        ----------
        key:
            Session key of the incoming request.

        Returns
        -------
        Any | None
            The stored value, else ``initial()`` if a factory was given,
            else ``None``.
        """
        box = await self.load(key)
        return box.value

    async def after_request(self, key: str, value: Any = _UNSET) -> None:
        """Persist the session value for ``key``.

        Overlapping requests for one key are matched first in, first out.

        Parameters
        ----------
        key:
            The key used in the preceding ``before_request`` call.
        value:
            The new session value.  When omitted, the object returned by
            ``before_request`` is saved, including in-place mutations.
            ``None`` deletes the stored session.

        Raises
        ------
        KeyError
            If no ``before_request`` call for ``key`` is pending.
        """
        boxes = self._active.get(key)
        if not boxes:
            raise KeyError(
                f"No active session for {key!r}. "
                "Call before_request() before after_request()."
            )
        box = boxes[0]
        if value is not _UNSET:
            box.value = value
        await self.save(box)

    def get_active(self, key: str) -> Any | None:
        """Return the value of the most recent in-flight request for ``key``, if any."""
        boxes = self._active.get(key)
        return boxes[-1].value if boxes else None

    def clear_active(self, key: str) -> None:
        """Discard every in-flight session for ``key`` without saving."""
        self._active.pop(key, None)
        logger.debug("SessionMiddleware: cleared active session %r", key)

    @asynccontextmanager
    async def session(self, key: str) -> AsyncIterator[SessionBox]:
        """Load, yield and persist the session for ``key``.

        If the body raises, nothing is saved.

        Example
        -------
        ::

            async with middleware.session("chat-42") as box:
                box.value["count"] += 1
        """
        box = await self.load(key)
        try:
            yield box
        except BaseException:
            self.discard(box)
            raise
        await self.save(box)


__all__ = ["SessionBox", "SessionMiddleware"]
