"""Unit tests for bot_session_storage.storage.sql.SQLAdapter.

SQLite tests run against a real in-memory ``aiosqlite`` database.  The
asyncpg-style path is exercised with a recording fake connection.
"""
from __future__ import annotations

from typing import Any

import aiosqlite
import pytest
import pytest_asyncio

from bot_session_storage.serialization import JsonSerializer, YamlSerializer
from bot_session_storage.storage.sql import SQLAdapter, _SQLiteRunner


class _FakePgConnection:
    """Records asyncpg-style calls and answers ``fetchrow`` from a dict."""

    def __init__(self) -> None:
        self.executed: list[tuple[str, tuple[Any, ...]]] = []
        self.rows: dict[str, str] = {}

    async def execute(self, sql: str, *args: Any) -> str:
        self.executed.append((sql, args))
        if sql.lstrip().startswith("INSERT"):
            self.rows[args[0]] = args[1]
        elif sql.lstrip().startswith("DELETE"):
            self.rows.pop(args[0], None)
        return "OK"

    async def fetchrow(self, sql: str, *args: Any) -> tuple[str] | None:
        raw = self.rows.get(args[0])
        return None if raw is None else (raw,)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture()
async def connection():
    async with aiosqlite.connect(":memory:") as conn:
        yield conn


@pytest_asyncio.fixture()
async def adapter(connection: aiosqlite.Connection) -> SQLAdapter:
    return await SQLAdapter.create(connection)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestSQLAdapterConstruction:
    def test_direct_construction_rejected(self) -> None:
        with pytest.raises(TypeError, match="SQLAdapter.create"):
            SQLAdapter(_SQLiteRunner(object()), "sessions", JsonSerializer())

    @pytest.mark.asyncio
    async def test_default_table_name(self, adapter: SQLAdapter) -> None:
        assert adapter.table_name == "sessions"
        assert "sessions" in repr(adapter)

    @pytest.mark.asyncio
    async def test_creates_table_and_unique_index(
        self, connection: aiosqlite.Connection
    ) -> None:
        await SQLAdapter.create(connection, "bot_sessions")
        async with connection.execute(
            "SELECT type, name FROM sqlite_master WHERE tbl_name = ? ORDER BY type",
            ("bot_sessions",),
        ) as cursor:
            rows = await cursor.fetchall()
        assert [tuple(r) for r in rows] == [
            ("index", "IDX_bot_sessions"),
            ("table", "bot_sessions"),
        ]

    @pytest.mark.asyncio
    async def test_create_is_idempotent(self, connection: aiosqlite.Connection) -> None:
        first = await SQLAdapter.create(connection)
        await first.write("u1", {"v": 1})
        second = await SQLAdapter.create(connection)
        assert await second.read("u1") == {"v": 1}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "table_name", ["", "1sessions", "sessions; DROP TABLE x", 'a"b', "with space"]
    )
    async def test_invalid_table_name_rejected(
        self, connection: aiosqlite.Connection, table_name: str
    ) -> None:
        with pytest.raises(ValueError, match="Invalid table name"):
            await SQLAdapter.create(connection, table_name)

    @pytest.mark.asyncio
    async def test_unsupported_client_rejected(self) -> None:
        with pytest.raises(TypeError, match="Unsupported database client"):
            await SQLAdapter.create(object())


# ---------------------------------------------------------------------------
# SQLite operations
# ---------------------------------------------------------------------------


class TestSQLAdapterSQLite:
    @pytest.mark.asyncio
    async def test_read_missing_returns_none(self, adapter: SQLAdapter) -> None:
        assert await adapter.read("nobody") is None

    @pytest.mark.asyncio
    async def test_write_then_read(self, adapter: SQLAdapter) -> None:
        await adapter.write("u1", {"pizzaCount": 3})
        assert await adapter.read("u1") == {"pizzaCount": 3}

    @pytest.mark.asyncio
    async def test_write_upserts_single_row(
        self, adapter: SQLAdapter, connection: aiosqlite.Connection
    ) -> None:
        await adapter.write("u1", 1)
        await adapter.write("u1", 2)
        assert await adapter.read("u1") == 2
        async with connection.execute('SELECT COUNT(*) FROM "sessions"') as cursor:
            (count,) = await cursor.fetchone()
        assert count == 1

    @pytest.mark.asyncio
    async def test_value_stored_as_json_text(
        self, adapter: SQLAdapter, connection: aiosqlite.Connection
    ) -> None:
        await adapter.write("u1", {"a": [1, 2]})
        async with connection.execute(
            'SELECT "value" FROM "sessions" WHERE "key" = ?', ("u1",)
        ) as cursor:
            (raw,) = await cursor.fetchone()
        assert raw == '{"a": [1, 2]}'

    @pytest.mark.asyncio
    async def test_delete(self, adapter: SQLAdapter) -> None:
        await adapter.write("u1", "x")
        await adapter.delete("u1")
        assert await adapter.read("u1") is None

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self, adapter: SQLAdapter) -> None:
        await adapter.delete("ghost")

    @pytest.mark.asyncio
    async def test_tables_are_independent(self, connection: aiosqlite.Connection) -> None:
        a = await SQLAdapter.create(connection, "table_a")
        b = await SQLAdapter.create(connection, "table_b")
        await a.write("k", "from-a")
        assert await b.read("k") is None

    @pytest.mark.asyncio
    async def test_yaml_serializer(self, connection: aiosqlite.Connection) -> None:
        adapter = await SQLAdapter.create(connection, serializer=YamlSerializer())
        await adapter.write("u1", {"lang": "fr"})
        assert await adapter.read("u1") == {"lang": "fr"}


# ---------------------------------------------------------------------------
# asyncpg-style clients
# ---------------------------------------------------------------------------


class TestSQLAdapterPostgresStyle:
    @pytest.mark.asyncio
    async def test_uses_numbered_placeholders(self) -> None:
        conn = _FakePgConnection()
        adapter = await SQLAdapter.create(conn)
        await adapter.write("u1", {"v": 1})

        sql, args = conn.executed[-1]
        assert "$1" in sql and "$2" in sql
        assert "?" not in sql
        assert args == ("u1", '{"v": 1}')

    @pytest.mark.asyncio
    async def test_setup_statements_run_first(self) -> None:
        conn = _FakePgConnection()
        await SQLAdapter.create(conn, "grammy_sessions")
        create_table, create_index = (sql for sql, _ in conn.executed)
        assert 'CREATE TABLE IF NOT EXISTS "grammy_sessions"' in create_table
        assert '"IDX_grammy_sessions"' in create_index

    @pytest.mark.asyncio
    async def test_read_write_delete(self) -> None:
        conn = _FakePgConnection()
        adapter = await SQLAdapter.create(conn)
        assert await adapter.read("u1") is None
        await adapter.write("u1", [1, 2])
        assert await adapter.read("u1") == [1, 2]
        await adapter.delete("u1")
        assert await adapter.read("u1") is None
