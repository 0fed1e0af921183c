"""bot-session-storage — pluggable session storage for chat bots.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import bot_session_storage
>>> bot_session_storage.__version__
'0.1.0'
"""
from __future__ import annotations

# Errors
from bot_session_storage.exceptions import (
    AuthenticationError,
    RemoteStorageError,
    SerializationError,
    SessionStorageError,
)

# Configuration and serialization
from bot_session_storage.config import DEFAULT_ROOT_URL, RemoteStorageOptions
from bot_session_storage.serialization import (
    JsonSerializer,
    ValueSerializer,
    YamlSerializer,
    get_serializer,
)

# Storage adapters
from bot_session_storage.storage.base import StorageAdapter
from bot_session_storage.storage.filesystem import FileAdapter
from bot_session_storage.storage.memory import MemoryAdapter
from bot_session_storage.storage.redis import RedisAdapter
from bot_session_storage.storage.sql import SQLAdapter

# Remote store client
from bot_session_storage.remote.client import RemoteStorageClient
from bot_session_storage.remote.credentials import CredentialManager
from bot_session_storage.remote.retry import BackoffPolicy, BackoffRetrier

# Middleware
from bot_session_storage.middleware.session_middleware import SessionBox, SessionMiddleware

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Errors
    "AuthenticationError",
    "RemoteStorageError",
    "SerializationError",
    "SessionStorageError",
    # Configuration / serialization
    "DEFAULT_ROOT_URL",
    "JsonSerializer",
    "RemoteStorageOptions",
    "ValueSerializer",
    "YamlSerializer",
    "get_serializer",
    # Storage
    "FileAdapter",
    "MemoryAdapter",
    "RedisAdapter",
    "SQLAdapter",
    "StorageAdapter",
    # Remote
    "BackoffPolicy",
    "BackoffRetrier",
    "CredentialManager",
    "RemoteStorageClient",
    # Middleware
    "SessionBox",
    "SessionMiddleware",
]
