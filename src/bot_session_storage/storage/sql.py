"""Relational session storage adapter.

Stores one row per session key in a configurable table.  The adapter works
with the connection object the application already has:

- an ``aiosqlite`` connection (``?`` placeholders, explicit commit), or
- an asyncpg-style connection or pool exposing ``fetchrow`` and
  ``execute`` (``$1`` placeholders, autocommit).

Because the table has to exist before the first query, instances are
created through the async factory ``SQLAdapter.create``.

Classes
-------
- SQLAdapter  — table-backed session storage
"""
from __future__ import annotations

import logging
import re
from typing import Any, Protocol

from bot_session_storage.serialization import JsonSerializer, ValueSerializer
from bot_session_storage.storage.base import StorageAdapter

logger = logging.getLogger(__name__)

_DEFAULT_TABLE_NAME = "sessions"
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS "{table}" (
    "key"   VARCHAR NOT NULL,
    "value" TEXT
)
"""
_CREATE_INDEX_SQL = 'CREATE UNIQUE INDEX IF NOT EXISTS "IDX_{table}" ON "{table}" ("key")'
_SELECT_SQL = 'SELECT "value" FROM "{table}" WHERE "key" = {p1}'
_UPSERT_SQL = """
INSERT INTO "{table}" ("key", "value")
VALUES ({p1}, {p2})
ON CONFLICT ("key") DO UPDATE SET "value" = excluded."value"
"""
_DELETE_SQL = 'DELETE FROM "{table}" WHERE "key" = {p1}'


class _QueryRunner(Protocol):
    """Uniform async query surface over the supported client types."""

    def placeholder(self, index: int) -> str: ...

    async def execute(self, sql: str, args: tuple[Any, ...] = ()) -> None: ...

    async def fetch_value(self, sql: str, args: tuple[Any, ...] = ()) -> Any | None: ...


class _SQLiteRunner:
    """Runs queries on an ``aiosqlite.Connection``."""

    def __init__(self, connection: Any) -> None:
        self._connection = connection

    def placeholder(self, index: int) -> str:
        return "?"

    async def execute(self, sql: str, args: tuple[Any, ...] = ()) -> None:
        await self._connection.execute(sql, args)
        await self._connection.commit()

    async def fetch_value(self, sql: str, args: tuple[Any, ...] = ()) -> Any | None:
        async with self._connection.execute(sql, args) as cursor:
            row = await cursor.fetchone()
        return None if row is None else row[0]


class _PostgresRunner:
    """Runs queries on an asyncpg-style connection or pool."""

    def __init__(self, connection: Any) -> None:
        self._connection = connection

    def placeholder(self, index: int) -> str:
        return f"${index}"

    async def execute(self, sql: str, args: tuple[Any, ...] = ()) -> None:
        await self._connection.execute(sql, *args)

    async def fetch_value(self, sql: str, args: tuple[Any, ...] = ()) -> Any | None:
        row = await self._connection.fetchrow(sql, *args)
        return None if row is None else row[0]


def _build_query_runner(client: Any) -> _QueryRunner:
    """Pick the query runner matching ``client``'s API.

    Raises
    ------
    TypeError
        If ``client`` matches none of the supported connection shapes.
    """
    if hasattr(client, "fetchrow") and hasattr(client, "execute"):
        return _PostgresRunner(client)
    if hasattr(client, "execute") and hasattr(client, "commit"):
        return _SQLiteRunner(client)
    raise TypeError(
        f"Unsupported database client {type(client).__name__!r}: expected an "
        "aiosqlite connection or an asyncpg connection/pool."
    )


class SQLAdapter(StorageAdapter):
    """Persists sessions as ``(key, value)`` rows of a relational table.

    Do not instantiate directly; use ``await SQLAdapter.create(...)``.

    Parameters
    ----------
    runner:
        Query runner wrapping the database client.
    table_name:
        Name of the session table.
    serializer:
        Codec for session values.
    """

    def __init__(
        self,
        runner: _QueryRunner,
        table_name: str,
        serializer: ValueSerializer,
        *,
        _factory: bool = False,
    ) -> None:
        if not _factory:
            raise TypeError(
                "SQLAdapter cannot be constructed directly; "
                "use 'await SQLAdapter.create(client)'."
            )
        self._runner = runner
        self._table_name = table_name
        self._serializer = serializer
        p1, p2 = runner.placeholder(1), runner.placeholder(2)
        self._select_sql = _SELECT_SQL.format(table=table_name, p1=p1)
        self._upsert_sql = _UPSERT_SQL.format(table=table_name, p1=p1, p2=p2)
        self._delete_sql = _DELETE_SQL.format(table=table_name, p1=p1)

    @classmethod
    async def create(
        cls,
        client: Any,
        table_name: str = _DEFAULT_TABLE_NAME,
        serializer: ValueSerializer | None = None,
    ) -> SQLAdapter:
        """Create the session table if needed and return a ready adapter.

        Parameters
        ----------
        client:
            An open ``aiosqlite`` connection or an asyncpg connection/pool.
        table_name:
            Session table name.  Must be a plain SQL identifier.
            Defaults to ``"sessions"``.
        serializer:
            Codec for session values.  Defaults to ``JsonSerializer``.

        Returns
        -------
        SQLAdapter

        Raises
        ------
        ValueError
            If ``table_name`` is not a plain identifier.
        TypeError
            If ``client`` is not a supported connection type.
        """
        if not _IDENTIFIER_RE.match(table_name):
            raise ValueError(
                f"Invalid table name {table_name!r}: use letters, digits and underscores only."
            )
        runner = _build_query_runner(client)
        await runner.execute(_CREATE_TABLE_SQL.format(table=table_name))
        await runner.execute(_CREATE_INDEX_SQL.format(table=table_name))
        logger.debug("SQLAdapter: table %r ready", table_name)
        return cls(runner, table_name, serializer or JsonSerializer(), _factory=True)

    @property
    def table_name(self) -> str:
        return self._table_name

    # ------------------------------------------------------------------
    # StorageAdapter interface
    # ------------------------------------------------------------------

    async def read(self, key: str) -> Any | None:
        raw = await self._runner.fetch_value(self._select_sql, (key,))
        if raw is None:
            return None
        return self._serializer.loads(str(raw))

    async def write(self, key: str, value: Any) -> None:
        raw = self._serializer.dumps(value)
        await self._runner.execute(self._upsert_sql, (key, raw))

    async def delete(self, key: str) -> None:
        await self._runner.execute(self._delete_sql, (key,))

    def __repr__(self) -> str:
        return f"SQLAdapter(table_name={self._table_name!r})"


__all__ = ["SQLAdapter"]
