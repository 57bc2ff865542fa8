"""Shared test fixtures."""

from pathlib import Path

import pytest

from src.webhooks.store import SQLiteListenerStore


@pytest.fixture(autouse=False)
def _no_turso(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure tests use local file, not remote Turso."""
    monkeypatch.setattr("src.config.settings.turso_database_url", "")


@pytest.fixture
async def listener_store(tmp_path: Path, _no_turso) -> SQLiteListenerStore:
    """A SQLiteListenerStore backed by a temp database."""
    return SQLiteListenerStore(db_path=tmp_path / "test.db")
