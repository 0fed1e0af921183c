"""Middleware subpackage.

- SessionMiddleware — loads a session before a request, persists it after
"""
from __future__ import annotations

from bot_session_storage.middleware.session_middleware import SessionBox, SessionMiddleware

__all__ = ["SessionBox", "SessionMiddleware"]
