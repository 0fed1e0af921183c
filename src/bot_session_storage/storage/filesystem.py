"""Filesystem session storage adapter.

Persists each session as an individual file under a configurable
directory.  Defaults to ``./sessions`` relative to the working directory.

Classes
-------
- FileAdapter  — file-per-session storage
"""
from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Any
from urllib.parse import quote
from uuid import uuid4

from bot_session_storage.serialization import JsonSerializer, ValueSerializer
from bot_session_storage.storage.base import StorageAdapter

logger = logging.getLogger(__name__)

_DEFAULT_DIR_NAME = "sessions"
_FILE_EXTENSION = ".json"


class FileAdapter(StorageAdapter):
    """Stores sessions as individual files.

    Each session is stored as ``<directory>/<encoded key>.json``, where the
    key is percent-encoded so every key maps to its own file inside the
    directory.  The directory is
    created when the adapter is constructed.  File I/O runs in a worker
    thread so the event loop is never blocked.

    Parameters
    ----------
    dir_name:
        Directory for session files.  Relative paths are resolved against
        the current working directory.  Defaults to ``"sessions"``.
    serializer:
        Codec for session values.  Defaults to ``JsonSerializer``.
    """

    def __init__(
        self,
        dir_name: str | Path = _DEFAULT_DIR_NAME,
        serializer: ValueSerializer | None = None,
    ) -> None:
        self._directory: Path = Path(dir_name).resolve()
        self._directory.mkdir(parents=True, exist_ok=True)
        self._serializer = serializer or JsonSerializer()

    @property
    def directory(self) -> Path:
        """Absolute path of the session directory."""
        return self._directory

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _path_for(self, key: str) -> Path:
        """Return the file path for ``key``.

        Parameters
        ----------
        key:
            The session key.

        Returns
        -------
        Path
            Path to the session file inside the session directory.
        """
        # Percent-encoding is injective and leaves no path separators.
        safe_name = quote(key, safe="")
        return self._directory / f"{safe_name}{_FILE_EXTENSION}"

    def _read_file(self, path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write_file(self, path: Path, raw: str) -> None:
        # Readers must never observe a partially written file.
        tmp_path = path.with_name(f".{path.name}.{uuid4().hex}.tmp")
        tmp_path.write_text(raw, encoding="utf-8")
        os.replace(tmp_path, path)

    # ------------------------------------------------------------------
    # StorageAdapter interface
    # ------------------------------------------------------------------

    async def read(self, key: str) -> Any | None:
        raw = await asyncio.to_thread(self._read_file, self._path_for(key))
        if raw is None:
            return None
        return self._serializer.loads(raw)

    async def write(self, key: str, value: Any) -> None:
        raw = self._serializer.dumps(value)
        path = self._path_for(key)
        await asyncio.to_thread(self._write_file, path, raw)
        logger.debug("FileAdapter: wrote %s", path)

    async def delete(self, key: str) -> None:
        path = self._path_for(key)
        await asyncio.to_thread(path.unlink, missing_ok=True)
        logger.debug("FileAdapter: removed %s", path)

    def __repr__(self) -> str:
        return f"FileAdapter(directory={str(self._directory)!r})"


__all__ = ["FileAdapter"]
