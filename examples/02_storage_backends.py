#!/usr/bin/env python3
"""Example: Storage Backends

Demonstrates writing and reading a session with the in-memory,
filesystem, SQLite and (optionally) remote storage adapters.

Usage:
    python examples/02_storage_backends.py

    BOT_TOKEN=123:abc python examples/02_storage_backends.py   # adds remote

Requirements:
    pip install 'bot-session-storage[sqlite]'
"""
from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path

import aiosqlite

import bot_session_storage
from bot_session_storage import (
    FileAdapter,
    MemoryAdapter,
    RemoteStorageClient,
    SQLAdapter,
    StorageAdapter,
)


async def demo_adapter(label: str, storage: StorageAdapter, key: str) -> None:
    await storage.write(key, {"step": "checkout", "cart": ["margherita"]})
    loaded = await storage.read(key)
    print(f"  [{label}] written + read: {loaded}")
    await storage.delete(key)


async def main() -> None:
    print(f"bot-session-storage version: {bot_session_storage.__version__}")

    print("\nIn-memory adapter:")
    await demo_adapter("memory", MemoryAdapter(), "chat-1")

    print("\nFilesystem adapter:")
    with tempfile.TemporaryDirectory() as tmpdir:
        adapter = FileAdapter(Path(tmpdir) / "sessions")
        await adapter.write("chat-2", {"lang": "en"})
        files = list(adapter.directory.iterdir())
        print(f"  Files written: {[f.name for f in files]}")
        await demo_adapter("filesystem", adapter, "chat-3")

    print("\nSQLite adapter:")
    with tempfile.TemporaryDirectory() as tmpdir:
        async with aiosqlite.connect(str(Path(tmpdir) / "sessions.db")) as conn:
            adapter = await SQLAdapter.create(conn, table_name="bot_sessions")
            await demo_adapter("sqlite", adapter, "chat-4")

    bot_token = os.environ.get("BOT_TOKEN")
    if bot_token:
        print("\nRemote adapter:")
        async with RemoteStorageClient(bot_token) as client:
            await demo_adapter("remote", client, "chat-5")
    else:
        print("\nSet BOT_TOKEN to also try the remote adapter.")


if __name__ == "__main__":
    asyncio.run(main())
