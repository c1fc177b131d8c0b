"""Tests for DatabaseManager."""

from pathlib import Path

import pytest
from sqlalchemy import inspect

from repochat.infrastructure.persistence import DatabaseManager
from repochat.infrastructure.persistence.database import (
    BUSY_TIMEOUT_MS,
    database_url,
)


class TestDatabaseManager:
    """DatabaseManager tests."""

    async def test_creates_parent_directory(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "dir" / "chat.db"
        manager = DatabaseManager(str(db_path))

        await manager.create_tables()
        await manager.close()

        assert db_path.parent.is_dir()
        assert db_path.exists()

    async def test_creates_message_table(self, tmp_path: Path) -> None:
        manager = DatabaseManager(str(tmp_path / "chat.db"))
        await manager.create_tables()

        async with manager.get_engine().connect() as conn:
            tables = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )
        await manager.close()

        assert "ai_chat_messages" in tables

    async def test_engine_is_cached(self) -> None:
        manager = DatabaseManager(":memory:")

        assert manager.get_engine() is manager.get_engine()
        await manager.close()

    async def test_close_is_idempotent(self) -> None:
        manager = DatabaseManager(":memory:")
        manager.get_engine()

        await manager.close()
        await manager.close()

    async def test_sets_busy_timeout(self, tmp_path: Path) -> None:
        manager = DatabaseManager(tmp_path / "chat.db")

        async with manager.get_engine().connect() as conn:
            result = await conn.exec_driver_sql("PRAGMA busy_timeout")
            timeout = result.scalar()
        await manager.close()

        assert timeout == BUSY_TIMEOUT_MS


class TestDatabaseUrl:
    """database_url tests."""

    def test_memory(self) -> None:
        assert database_url(":memory:") == "sqlite+aiosqlite:///:memory:"

    def test_existing_url_passes_through(self) -> None:
        url = "sqlite+aiosqlite:////var/lib/repochat/chat.db"

        assert database_url(url) == url

    def test_expands_home(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))

        url = database_url("~/data/chat.db")

        assert url == f"sqlite+aiosqlite:///{tmp_path / 'data' / 'chat.db'}"
        assert (tmp_path / "data").is_dir()
