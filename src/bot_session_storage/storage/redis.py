"""Redis session storage adapter — requires redis[asyncio] (guarded import).

Classes
-------
- RedisAdapter  — redis.asyncio-backed key-value session storage
"""
from __future__ import annotations

from typing import Any

from bot_session_storage.serialization import JsonSerializer, ValueSerializer
from bot_session_storage.storage.base import StorageAdapter

_REDIS_IMPORT_ERROR = (
    "RedisAdapter requires the 'redis' package with asyncio support. "
    "Install it with: pip install redis  or  "
    "pip install 'bot-session-storage[redis]'"
)


class RedisAdapter(StorageAdapter):
    """Persists sessions in a Redis instance using ``redis.asyncio``.

    Each session is stored as a Redis string under the key
    ``<key_prefix><key>``.

    Parameters
    ----------
    client:
        An existing ``redis.asyncio.Redis`` client.  When supplied, ``url``
        is ignored and the ``redis`` package is not imported.  The caller
        owns it and ``aclose`` leaves it open.
    url:
        Redis connection URL used to build a client when ``client`` is not
        given.  Defaults to ``"redis://localhost:6379/0"``.
    key_prefix:
        String prepended to all session keys.  Defaults to ``"sessions:"``.
    ttl_seconds:
        Optional TTL for session keys.  When ``None`` (default) keys
        persist until explicitly deleted.
    serializer:
        Codec for session values.  Defaults to ``JsonSerializer``.
    """

    def __init__(
        self,
        client: Any | None = None,
        *,
        url: str | None = None,
        key_prefix: str = "sessions:",
        ttl_seconds: int | None = None,
        serializer: ValueSerializer | None = None,
    ) -> None:
        self._owns_client = client is None
        if client is None:
            try:
                import redis.asyncio as redis_asyncio
            except ImportError as exc:
                raise ImportError(_REDIS_IMPORT_ERROR) from exc
            client = redis_asyncio.Redis.from_url(
                url or "redis://localhost:6379/0", decode_responses=True
            )
        self._client = client
        self._key_prefix = key_prefix
        self._ttl_seconds = ttl_seconds
        self._serializer = serializer or JsonSerializer()

    def _key(self, key: str) -> str:
        """Return the full Redis key for the session ``key``."""
        return f"{self._key_prefix}{key}"

    # ------------------------------------------------------------------
    # StorageAdapter interface
    # ------------------------------------------------------------------

    async def read(self, key: str) -> Any | None:
        raw = await self._client.get(self._key(key))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return self._serializer.loads(raw)

    async def write(self, key: str, value: Any) -> None:
        raw = self._serializer.dumps(value)
        if self._ttl_seconds is not None:
            await self._client.setex(self._key(key), self._ttl_seconds, raw)
        else:
            await self._client.set(self._key(key), raw)

    async def delete(self, key: str) -> None:
        await self._client.delete(self._key(key))

    async def aclose(self) -> None:
        """Close the Redis client if this adapter created it."""
        if self._owns_client:
            await self._client.aclose()

    def __repr__(self) -> str:
        return (
            f"RedisAdapter(key_prefix={self._key_prefix!r}, "
            f"ttl_seconds={self._ttl_seconds!r})"
        )


__all__ = ["RedisAdapter"]
