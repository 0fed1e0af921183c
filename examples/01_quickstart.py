#!/usr/bin/env python3
"""Example: Quickstart — bot-session-storage

Minimal working example: a pizza counter kept in an in-memory session,
loaded before and saved after each simulated update.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install bot-session-storage
"""
from __future__ import annotations

import asyncio

import bot_session_storage
from bot_session_storage import MemoryAdapter, SessionMiddleware


async def handle_update(middleware: SessionMiddleware, chat_id: int, text: str) -> None:
    async with middleware.session(str(chat_id)) as box:
        if "pizza" in text:
            box.value["pizzaCount"] += 1
        print(f"  chat {chat_id}: {text!r} -> {box.value}")


async def main() -> None:
    print(f"bot-session-storage version: {bot_session_storage.__version__}")

    storage = MemoryAdapter()
    middleware = SessionMiddleware(storage, initial=lambda: {"pizzaCount": 0})

    for text in ("hello", "one pizza please", "another pizza"):
        await handle_update(middleware, 42, text)

    print(f"Stored session: {await storage.read('42')}")

    # Setting the value to None removes the session.
    async with middleware.session("42") as box:
        box.value = None
    print(f"After reset: {await storage.read('42')}")


if __name__ == "__main__":
    asyncio.run(main())
