"""In-memory session storage adapter.

Stores serialized values in a plain Python dict guarded by ``asyncio.Lock``.
All data is lost when the process exits.  This adapter is primarily useful
for tests and local prototyping.

Classes
-------
- MemoryAdapter  — dict-backed ephemeral storage
"""
from __future__ import annotations

import asyncio
from typing import Any

from bot_session_storage.serialization import JsonSerializer, ValueSerializer
from bot_session_storage.storage.base import StorageAdapter


class MemoryAdapter(StorageAdapter):
    """Ephemeral, in-process storage adapter.

    Values are kept in serialized form, so a value returned by ``read`` is
    always a fresh copy and mutating it never changes the stored session.

    Parameters
    ----------
    initial_data:
        Optional pre-populated mapping of keys to *serialized* values.
        A shallow copy is taken so the caller's dict is not mutated.
    serializer:
        Codec for session values.  Defaults to ``JsonSerializer``.
    """

    def __init__(
        self,
        initial_data: dict[str, str] | None = None,
        serializer: ValueSerializer | None = None,
    ) -> None:
        self._store: dict[str, str] = dict(initial_data or {})
        self._serializer = serializer or JsonSerializer()
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # StorageAdapter interface
    # ------------------------------------------------------------------

    async def read(self, key: str) -> Any | None:
        async with self._lock:
            raw = self._store.get(key)
        if raw is None:
            return None
        return self._serializer.loads(raw)

    async def write(self, key: str, value: Any) -> None:
        raw = self._serializer.dumps(value)
        async with self._lock:
            self._store[key] = raw

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._store.pop(key, None)

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    def keys(self) -> list[str]:
        """Return all stored keys in insertion order."""
        return list(self._store)

    async def clear(self) -> None:
        """Remove all stored values."""
        async with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"MemoryAdapter(sessions={len(self._store)})"


__all__ = ["MemoryAdapter"]
