"""ListenerStore — libsql persistence for webhook listener URLs."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from src.db import connection
from src.webhooks.models import ListenerRecord

if TYPE_CHECKING:
    from pathlib import Path

    from src.db import AsyncConnection

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS webhook_listeners (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    url        TEXT NOT NULL UNIQUE,
    source     TEXT NOT NULL DEFAULT '',
    created_at TEXT NOT NULL
)
"""

_COLUMNS = "id, url, source, created_at"


@runtime_checkable
class ListenerStore(Protocol):
    """Registry of listener endpoints, keyed by exact URL."""

    async def list_all(self) -> list[ListenerRecord]: ...

    async def list_by_source(self, source: str) -> list[ListenerRecord]: ...

    async def add(self, url: str, source: str) -> bool: ...

    async def remove(self, url: str) -> int: ...


class SQLiteListenerStore:
    """Persists webhook listeners in SQLite / Turso.

    Singleton accessed via ``SQLiteListenerStore.get()``.  Pass an explicit
    *db_path* for test isolation (e.g. ``tmp_path / "test.db"``).
    """

    _instance: SQLiteListenerStore | None = None

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path
        self._initialised = False

    @classmethod
    def get(cls) -> SQLiteListenerStore:
        """Return the shared store instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    # -- Internal helpers ------------------------------------------------------

    async def _ensure_schema(self, db: AsyncConnection) -> None:
        if self._initialised:
            return
        await db.write(_CREATE_TABLE)
        self._initialised = True

    async def initialise(self) -> None:
        """Create the listeners table if it does not exist yet."""
        async with connection(self._db_path) as db:
            await self._ensure_schema(db)
        logger.info("Listener store ready")

    # -- Queries ---------------------------------------------------------------

    async def list_all(self) -> list[ListenerRecord]:
        """Return every listener, oldest first."""
        async with connection(self._db_path) as db:
            await self._ensure_schema(db)
            rows = await db.fetchall(f"SELECT {_COLUMNS} FROM webhook_listeners ORDER BY id")
        return [ListenerRecord.from_row(row) for row in rows]

    async def list_by_source(self, source: str) -> list[ListenerRecord]:
        """Return listeners whose source equals *source* exactly."""
        async with connection(self._db_path) as db:
            await self._ensure_schema(db)
            rows = await db.fetchall(
                f"SELECT {_COLUMNS} FROM webhook_listeners WHERE source = ? ORDER BY id",
                (source,),
            )
        return [ListenerRecord.from_row(row) for row in rows]

    # -- Mutations -------------------------------------------------------------

    async def add(self, url: str, source: str) -> bool:
        """Insert a listener. A URL that is already present is left untouched.

        Returns True if a new row was written.
        """
        now = datetime.now(UTC).isoformat()
        async with connection(self._db_path) as db:
            await self._ensure_schema(db)
            changed = await db.write(
                "INSERT OR IGNORE INTO webhook_listeners (url, source, created_at) VALUES (?, ?, ?)",
                (url, source, now),
            )
        added = changed > 0
        if added:
            logger.info("Added listener (source=%s)", source or "-")
        return added

    async def remove(self, url: str) -> int:
        """Delete a listener by URL. Returns the number of rows removed (0 or 1)."""
        async with connection(self._db_path) as db:
            await self._ensure_schema(db)
            return await db.write("DELETE FROM webhook_listeners WHERE url = ?", (url,))
