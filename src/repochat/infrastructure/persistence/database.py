"""Chat history database."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# Import models to register them with SQLModel metadata
from repochat.infrastructure.persistence import models as _models  # noqa: F401

logger = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"
BUSY_TIMEOUT_MS = 5000


def database_url(database_path: str | Path) -> str:
    """Build an aiosqlite URL from a path, ``:memory:`` or an existing URL.

    ``~`` is expanded and missing parent directories are created.
    """
    raw = str(database_path).strip()
    if raw.startswith("sqlite"):
        return raw
    if raw == MEMORY_DATABASE:
        return f"sqlite+aiosqlite:///{MEMORY_DATABASE}"

    path = Path(raw).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite+aiosqlite:///{path}"


def _set_sqlite_pragmas(dbapi_connection: Any, connection_record: Any) -> None:
    # Retention sweeps and chat writes share the file; wait instead of failing.
    cursor = dbapi_connection.cursor()
    cursor.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
    cursor.close()


class DatabaseManager:
    """チャット履歴データベースの管理

    エンジンは初回利用時に生成する。接続ごとに busy_timeout を設定する。
    """

    def __init__(self, database_path: str | Path) -> None:
        """初期化

        Args:
            database_path: SQLite ファイルのパス、":memory:"、または
                sqlite URL
        """
        self._database_path = database_path
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def url(self) -> str:
        return str(self.get_engine().url)

    def get_engine(self) -> AsyncEngine:
        """非同期エンジンを取得する（遅延生成・キャッシュ）"""
        if self._engine is not None:
            return self._engine

        url = database_url(self._database_path)
        self._engine = create_async_engine(url)
        event.listen(self._engine.sync_engine, "connect", _set_sqlite_pragmas)
        self._session_factory = async_sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )
        logger.debug("Chat history database: %s", url)
        return self._engine

    async def create_tables(self) -> None:
        """テーブルを作成する（既存なら何もしない）"""
        engine = self.get_engine()
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """セッションを取得する

        Yields:
            AsyncSession インスタンス
        """
        self.get_engine()
        assert self._session_factory is not None
        async with self._session_factory() as session:
            yield session

    async def close(self) -> None:
        """エンジンを破棄する。再度 get_engine すれば再接続できる。"""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
