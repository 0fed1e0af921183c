"""Abstract base class for session storage adapters.

Every backend (the remote store client and all peer adapters) implements
the three coroutines defined here, so the session middleware can use any
of them interchangeably.

Classes
-------
- StorageAdapter  — abstract base for all adapters
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class StorageAdapter(ABC):
    """Asynchronous read/write/delete of session values by string key.

    A missing key is a normal state, not an error: ``read`` returns
    ``None`` for it and ``delete`` accepts it silently.
    """

    @abstractmethod
    async def read(self, key: str) -> Any | None:
        """Return the value stored under ``key``.

        Parameters
        ----------
        key:
            Session key.

        Returns
        -------
        Any | None
            The deserialized value, or ``None`` if nothing is stored.
        """

    @abstractmethod
    async def write(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``.

        Any existing value for ``key`` is fully replaced.

        Parameters
        ----------
        key:
            Session key.
        value:
            Session value; must be encodable by the adapter's serializer.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the value stored under ``key``.

        Deleting a key that holds no value succeeds without error.

        Parameters
        ----------
        key:
            Session key.
        """


__all__ = ["StorageAdapter"]
