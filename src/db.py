"""Async database access over libsql.

The synchronous ``libsql`` driver runs in worker threads via
``asyncio.to_thread()``.  Each call on :class:`AsyncConnection` does its whole
job (execute plus fetch, or execute plus commit) in a single thread hop, so
no driver cursor ever escapes to async code.  Connection target is determined
by settings:

- **Production**: ``TURSO_DATABASE_URL`` + ``TURSO_AUTH_TOKEN`` → remote Turso
- **Dev/test**: no Turso env vars → local SQLite file via ``database_path``

Use :func:`connection` as an async context manager; it closes the
connection on exit whether or not the body raised.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import libsql

if TYPE_CHECKING:
    from pathlib import Path

from src.config import settings

Params = tuple[Any, ...]


class AsyncConnection:
    """A libsql connection with query helpers that run off the event loop."""

    def __init__(self, conn: Any) -> None:
        self._conn = conn

    async def fetchall(self, sql: str, params: Params = ()) -> list[tuple]:
        """Run a query and return every row."""
        return await asyncio.to_thread(lambda: self._conn.execute(sql, params).fetchall())

    async def fetchone(self, sql: str, params: Params = ()) -> tuple | None:
        """Run a query and return its first row, or None."""
        return await asyncio.to_thread(lambda: self._conn.execute(sql, params).fetchone())

    async def write(self, sql: str, params: Params = ()) -> int:
        """Run a statement, commit, and return the number of rows it changed.

        Drivers report -1 when the count is unknown; that is returned as 0.
        """

        def _write() -> int:
            cursor = self._conn.execute(sql, params)
            self._conn.commit()
            return max(cursor.rowcount, 0)

        return await asyncio.to_thread(_write)

    async def close(self) -> None:
        await asyncio.to_thread(self._conn.close)


def _connect_remote() -> Any:
    return libsql.connect(
        database=settings.turso_database_url,
        auth_token=settings.turso_auth_token,
    )


def _connect_local(path: Path) -> Any:
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = libsql.connect(str(path))
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    return conn


async def open_connection(local_path_override: Path | None = None) -> AsyncConnection:
    """Open a new connection.

    *local_path_override* (test isolation) wins over everything else, then a
    configured Turso URL, then the local ``database_path`` file.
    """
    if local_path_override is None and settings.turso_database_url:
        return AsyncConnection(await asyncio.to_thread(_connect_remote))
    path = local_path_override or settings.database_path
    return AsyncConnection(await asyncio.to_thread(_connect_local, path))


@asynccontextmanager
async def connection(local_path_override: Path | None = None) -> AsyncIterator[AsyncConnection]:
    """Yield an open connection and close it afterwards."""
    db = await open_connection(local_path_override)
    try:
        yield db
    finally:
        await db.close()
