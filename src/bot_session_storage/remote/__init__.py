"""Client for the hosted remote session store.

Public surface
--------------
- RemoteStorageClient — ``StorageAdapter`` talking to the remote store
- CredentialManager   — bearer credential with single-flight login
- BackoffRetrier      — exponential backoff for transient failures
- BackoffPolicy       — delay schedule used by ``BackoffRetrier``
"""
from __future__ import annotations

from bot_session_storage.remote.client import CallOutcome, RemoteStorageClient
from bot_session_storage.remote.credentials import CredentialManager
from bot_session_storage.remote.retry import (
    BackoffPolicy,
    BackoffRetrier,
    RetryPhase,
    RetryState,
)

__all__ = [
    "BackoffPolicy",
    "BackoffRetrier",
    "CallOutcome",
    "CredentialManager",
    "RemoteStorageClient",
    "RetryPhase",
    "RetryState",
]
