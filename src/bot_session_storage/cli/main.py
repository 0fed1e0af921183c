"""CLI entry point for bot-session-storage.

Invoked as::

    bot-session-storage [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m bot_session_storage.cli.main

Commands
--------
- version      — Show version information
- session      — Session inspection command group

Session sub-commands
---------------------
- session read    — Print the value stored under a key
- session write   — Store a JSON value under a key
- session delete  — Remove the value stored under a key
- session token   — Log in to the remote store and print the credential
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypeVar

import click
from rich.console import Console

from bot_session_storage.config import DEFAULT_ROOT_URL
from bot_session_storage.exceptions import SessionStorageError
from bot_session_storage.serialization import get_serializer
from bot_session_storage.storage.base import StorageAdapter

console = Console()

T = TypeVar("T")

_BACKENDS = ["memory", "filesystem", "sqlite", "redis", "remote"]


@dataclass(frozen=True)
class BackendSettings:
    """Options collected by the ``session`` group for building an adapter."""

    backend: str = "filesystem"
    format: str = "json"
    storage_dir: str | None = None
    db_path: str | None = None
    table_name: str = "sessions"
    redis_url: str | None = None
    key_prefix: str = "sessions:"
    bot_token: str | None = None
    root_url: str = DEFAULT_ROOT_URL
    jwt: str | None = None


# ---------------------------------------------------------------------------
# Storage adapter factory
# ---------------------------------------------------------------------------


@asynccontextmanager
async def open_adapter(settings: BackendSettings) -> AsyncIterator[StorageAdapter]:
    """Open the adapter described by ``settings`` and close it afterwards.

    Raises
    ------
    click.UsageError
        If the remote backend is selected without a bot token or with a
        root URL that is not http(s), or the backend name is unknown.
    """
    from bot_session_storage.storage.filesystem import FileAdapter
    from bot_session_storage.storage.memory import MemoryAdapter

    serializer = get_serializer(settings.format)  # type: ignore[arg-type]

    if settings.backend == "memory":
        yield MemoryAdapter(serializer=serializer)
    elif settings.backend == "filesystem":
        yield FileAdapter(settings.storage_dir or "sessions", serializer=serializer)
    elif settings.backend == "sqlite":
        import aiosqlite

        from bot_session_storage.storage.sql import SQLAdapter

        db_path = Path(settings.db_path) if settings.db_path else Path("sessions.db")
        async with aiosqlite.connect(str(db_path)) as conn:
            yield await SQLAdapter.create(conn, settings.table_name, serializer=serializer)
    elif settings.backend == "redis":
        from bot_session_storage.storage.redis import RedisAdapter

        redis_adapter = RedisAdapter(
            url=settings.redis_url, key_prefix=settings.key_prefix, serializer=serializer
        )
        try:
            yield redis_adapter
        finally:
            await redis_adapter.aclose()
    elif settings.backend == "remote":
        from bot_session_storage.remote.client import RemoteStorageClient

        if not settings.bot_token:
            raise click.UsageError(
                "The remote backend needs a bot token (--bot-token or BOT_TOKEN)."
            )
        try:
            remote_client = RemoteStorageClient(
                settings.bot_token,
                root_url=settings.root_url,
                jwt=settings.jwt,
                serializer=serializer,
            )
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="'--root-url'") from exc
        async with remote_client as client:
            yield client
    else:
        raise click.UsageError(f"Unknown storage backend: {settings.backend!r}")


def _run(ctx: click.Context, operation: Callable[[StorageAdapter], Awaitable[T]]) -> T:
    """Run ``operation`` against the configured adapter, reporting storage errors."""
    settings: BackendSettings = ctx.obj["settings"]

    async def runner() -> T:
        async with open_adapter(settings) as adapter:
            return await operation(adapter)

    try:
        return asyncio.run(runner())
    except SessionStorageError as exc:
        console.print(f"[red]{type(exc).__name__}:[/red] {exc}")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="bot-session-storage")
@click.option("-v", "--verbose", is_flag=True, help="Log storage activity to stderr.")
def cli(verbose: bool) -> None:
    """Inspect and edit bot session storage"""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show version information."""
    from bot_session_storage import __version__

    console.print(f"[bold]bot-session-storage[/bold] v{__version__}")


# ---------------------------------------------------------------------------
# session command group
# ---------------------------------------------------------------------------


@cli.group(name="session")
@click.option(
    "--backend",
    default="filesystem",
    show_default=True,
    type=click.Choice(_BACKENDS, case_sensitive=False),
    help="Storage backend to use.",
)
@click.option(
    "--format",
    "value_format",
    default="json",
    show_default=True,
    type=click.Choice(["json", "yaml"], case_sensitive=False),
    help="Encoding of stored values.",
)
@click.option("--storage-dir", default=None, help="Directory for the filesystem backend.")
@click.option("--db-path", default=None, help="SQLite database file (sqlite backend).")
@click.option("--table-name", default="sessions", show_default=True, help="Session table name.")
@click.option("--redis-url", default=None, help="Redis connection URL (redis backend).")
@click.option("--key-prefix", default="sessions:", show_default=True, help="Redis key prefix.")
@click.option("--bot-token", envvar="BOT_TOKEN", default=None, help="Bot token (remote backend).")
@click.option(
    "--root-url",
    envvar="SESSION_STORAGE_URL",
    default=DEFAULT_ROOT_URL,
    show_default=True,
    help="Root URL of the remote store.",
)
@click.option(
    "--jwt",
    envvar="SESSION_STORAGE_JWT",
    default=None,
    help="Previously obtained storage credential (skips login).",
)
@click.pass_context
def session_group(
    ctx: click.Context,
    backend: str,
    value_format: str,
    storage_dir: str | None,
    db_path: str | None,
    table_name: str,
    redis_url: str | None,
    key_prefix: str,
    bot_token: str | None,
    root_url: str,
    jwt: str | None,
) -> None:
    """Session inspection commands."""
    ctx.ensure_object(dict)
    ctx.obj["settings"] = BackendSettings(
        backend=backend.lower(),
        format=value_format.lower(),
        storage_dir=storage_dir,
        db_path=db_path,
        table_name=table_name,
        redis_url=redis_url,
        key_prefix=key_prefix,
        bot_token=bot_token,
        root_url=root_url,
        jwt=jwt,
    )


# ---------------------------------------------------------------------------
# session read
# ---------------------------------------------------------------------------


@session_group.command(name="read")
@click.argument("key")
@click.option("--json-output", is_flag=True, help="Print compact JSON instead of formatted view.")
@click.pass_context
def session_read(ctx: click.Context, key: str, json_output: bool) -> None:
    """Print the session value stored under KEY."""
    value = _run(ctx, lambda adapter: adapter.read(key))
    if value is None:
        console.print(f"[yellow]No session stored for[/yellow] {key}")
        return
    if json_output:
        click.echo(json.dumps(value))
        return
    console.print_json(data=value)


# ---------------------------------------------------------------------------
# session write
# ---------------------------------------------------------------------------


@session_group.command(name="write")
@click.argument("key")
@click.argument("value")
@click.pass_context
def session_write(ctx: click.Context, key: str, value: str) -> None:
    """Store VALUE (a JSON document) under KEY, replacing any existing value."""
    try:
        data: Any = json.loads(value)
    except ValueError as exc:
        console.print(f"[red]VALUE is not valid JSON:[/red] {exc}")
        sys.exit(1)
    _run(ctx, lambda adapter: adapter.write(key, data))
    console.print(f"[green]Session saved:[/green] {key}")


# ---------------------------------------------------------------------------
# session delete
# ---------------------------------------------------------------------------


@session_group.command(name="delete")
@click.argument("key")
@click.pass_context
def session_delete(ctx: click.Context, key: str) -> None:
    """Remove the session value stored under KEY."""
    _run(ctx, lambda adapter: adapter.delete(key))
    console.print(f"[green]Session deleted:[/green] {key}")


# ---------------------------------------------------------------------------
# session token
# ---------------------------------------------------------------------------


@session_group.command(name="token")
@click.pass_context
def session_token(ctx: click.Context) -> None:
    """Log in to the remote store and print the storage credential.

    Pass the printed value as --jwt (or SESSION_STORAGE_JWT) to skip the
    login on later invocations.
    """
    settings: BackendSettings = ctx.obj["settings"]
    if settings.backend != "remote":
        console.print("[red]The token command requires --backend remote.[/red]")
        sys.exit(1)

    async def fetch(adapter: StorageAdapter) -> str:
        return await adapter.get_token()  # type: ignore[attr-defined]

    click.echo(_run(ctx, fetch))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


if __name__ == "__main__":
    cli()
