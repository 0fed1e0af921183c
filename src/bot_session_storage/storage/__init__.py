"""Storage adapter subpackage.

All adapters implement the ``StorageAdapter`` ABC, as does
``bot_session_storage.remote.RemoteStorageClient``.  Optional adapters
guard their third-party imports so that the package remains installable
without those extras.

Public surface
--------------
- StorageAdapter — abstract base class
- MemoryAdapter  — in-process dict (useful for testing)
- FileAdapter    — one file per session in a directory
- SQLAdapter     — one row per session (aiosqlite or asyncpg client)
- RedisAdapter   — Redis strings under a key prefix (requires ``redis``)
"""
from __future__ import annotations

from bot_session_storage.storage.base import StorageAdapter
from bot_session_storage.storage.filesystem import FileAdapter
from bot_session_storage.storage.memory import MemoryAdapter
from bot_session_storage.storage.redis import RedisAdapter
from bot_session_storage.storage.sql import SQLAdapter

__all__ = [
    "FileAdapter",
    "MemoryAdapter",
    "RedisAdapter",
    "SQLAdapter",
    "StorageAdapter",
]
