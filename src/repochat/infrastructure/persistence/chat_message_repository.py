"""SQLite implementation of ChatMessageRepository."""

import logging
from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from repochat.domain.entities import (
    ActiveConversation,
    AIProvider,
    ChatMessage,
    ContextType,
    ConversationKey,
    MessageRole,
)
from repochat.domain.repositories import ANY_CONTEXT, HistoryScope, MessageScope
from repochat.infrastructure.persistence.datetime_utils import (
    normalize_to_utc,
    utc_now,
)
from repochat.infrastructure.persistence.exceptions import DatabaseError
from repochat.infrastructure.persistence.models import ChatMessageModel

logger = logging.getLogger(__name__)


class SQLiteChatMessageRepository:
    """SQLite 版 ChatMessageRepository 実装

    メッセージの追記・取得・削除を SQLite データベースに対して行う。
    SQLAlchemy の例外は DatabaseError に変換して送出する。
    """

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        """初期化

        Args:
            session_factory: 非同期セッション生成関数
        """
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        """SQLAlchemy の例外を DatabaseError に変換するセッション"""
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as e:
            logger.error("Chat history database error: %s", e)
            raise DatabaseError(str(e)) from e

    async def save_message(self, message: ChatMessage) -> None:
        """メッセージを追記する

        同一 message_id が既に存在する場合は何もしない。

        Args:
            message: 保存するメッセージ
        """
        async with self._session() as session:
            result = await session.exec(
                select(ChatMessageModel).where(
                    ChatMessageModel.message_id == message.id
                )
            )
            if result.first() is not None:
                logger.debug("Message %s already stored, skipping", message.id)
                return

            session.add(self._to_model(message))
            await session.commit()

    async def save_messages(self, messages: list[ChatMessage]) -> None:
        """複数のメッセージを順に追記する"""
        for message in messages:
            await self.save_message(message)

    async def get_messages(
        self,
        scope: MessageScope = ANY_CONTEXT,
        limit: int = 100,
    ) -> list[ChatMessage]:
        """メッセージを取得する

        新しい順に limit 件を取得し、古い順に並べ替えて返す。
        created_at が同じ場合は挿入順。

        Args:
            scope: ConversationKey / None（一般）/ ANY_CONTEXT
            limit: 取得する最大件数

        Returns:
            メッセージリスト（古い順）
        """
        async with self._session() as session:
            statement = (
                select(ChatMessageModel)
                .where(*self._scope_filters(scope))
                .order_by(
                    ChatMessageModel.created_at.desc(),  # type: ignore[attr-defined]
                    ChatMessageModel.id.desc(),  # type: ignore[union-attr]
                )
                .limit(limit)
            )
            result = await session.exec(statement)
            models = result.all()
            return [self._to_entity(m) for m in reversed(models)]

    async def count_messages(self, scope: MessageScope = ANY_CONTEXT) -> int:
        """スコープ内のメッセージ件数を返す"""
        async with self._session() as session:
            statement = (
                select(func.count())
                .select_from(ChatMessageModel)
                .where(*self._scope_filters(scope))
            )
            result = await session.exec(statement)
            return int(result.one())

    async def delete_message(self, message_id: str) -> None:
        """メッセージを 1 件削除する"""
        await self._delete_where(ChatMessageModel.message_id == message_id)

    async def delete_conversation(self, key: ConversationKey) -> None:
        """コンテキストに紐づくメッセージをすべて削除する"""
        deleted = await self._delete_where(*self._scope_filters(key))
        logger.info(
            "Deleted %d messages for %s:%s",
            deleted,
            key.context_type.value,
            key.context_id,
        )

    async def delete_general(self) -> None:
        """コンテキストなしのメッセージをすべて削除する"""
        deleted = await self._delete_where(*self._scope_filters(None))
        logger.info("Deleted %d general messages", deleted)

    async def delete_all(self) -> None:
        """すべてのメッセージを削除する"""
        deleted = await self._delete_where()
        logger.info("Deleted all %d messages", deleted)

    async def clean_older_than(self, days: int, now: datetime | None = None) -> int:
        """指定日数より古いメッセージを削除する

        Args:
            days: 保持日数
            now: 基準時刻（省略時は現在時刻）

        Returns:
            削除したメッセージ数
        """
        reference = normalize_to_utc(now) if now else utc_now()
        cutoff = reference - timedelta(days=days)
        return await self._delete_where(
            ChatMessageModel.created_at < cutoff  # type: ignore[arg-type]
        )

    async def get_active_contexts(self) -> list[ActiveConversation]:
        """メッセージを持つコンテキストの一覧を取得する

        Returns:
            コンテキスト一覧（最終メッセージが新しい順）
        """
        last_message_at = func.max(ChatMessageModel.created_at).label(
            "last_message_at"
        )
        async with self._session() as session:
            statement = (
                select(
                    ChatMessageModel.context_type,
                    ChatMessageModel.context_id,
                    func.count().label("message_count"),
                    last_message_at,
                )
                .where(
                    ChatMessageModel.context_type.is_not(None),  # type: ignore[union-attr]
                    ChatMessageModel.context_id.is_not(None),  # type: ignore[union-attr]
                )
                .group_by(ChatMessageModel.context_type, ChatMessageModel.context_id)
                .order_by(last_message_at.desc())
            )
            result = await session.exec(statement)
            return [
                ActiveConversation(
                    context_type=ContextType(context_type),
                    context_id=context_id,
                    message_count=int(message_count),
                    last_message_at=normalize_to_utc(last_at),
                )
                for context_type, context_id, message_count, last_at in result.all()
            ]

    async def _delete_where(self, *conditions: Any) -> int:
        """条件に一致するメッセージを削除する（内部用）

        Returns:
            削除したレコード数
        """
        async with self._session() as session:
            result = await session.exec(select(ChatMessageModel).where(*conditions))
            models = result.all()

            for model in models:
                await session.delete(model)

            await session.commit()
            return len(models)

    def _scope_filters(self, scope: MessageScope) -> list[Any]:
        """スコープを WHERE 条件に変換する（内部用）"""
        if isinstance(scope, HistoryScope):
            return []
        if scope is None:
            return [ChatMessageModel.context_type.is_(None)]  # type: ignore[union-attr]
        return [
            ChatMessageModel.context_type == scope.context_type.value,
            ChatMessageModel.context_id == scope.context_id,
        ]

    def _to_entity(self, model: ChatMessageModel) -> ChatMessage:
        """モデルをエンティティに変換する

        Args:
            model: ChatMessageModel インスタンス

        Returns:
            ChatMessage エンティティ

        Raises:
            DatabaseError: 保存済みの行が不正
        """
        try:
            context_type = (
                ContextType(model.context_type) if model.context_type else None
            )
            return ChatMessage(
                id=model.message_id,
                role=MessageRole(model.role),
                content=model.content,
                context_type=context_type,
                context_id=model.context_id,
                provider=AIProvider(model.provider),
                model=model.model,
                token_count=model.token_count,
                created_at=normalize_to_utc(model.created_at),
            )
        except ValueError as e:
            raise DatabaseError(
                f"Invalid stored message {model.message_id}: {e}"
            ) from e

    def _to_model(self, entity: ChatMessage) -> ChatMessageModel:
        """エンティティをモデルに変換する

        Args:
            entity: ChatMessage エンティティ

        Returns:
            ChatMessageModel インスタンス
        """
        return ChatMessageModel(
            message_id=entity.id,
            role=entity.role.value,
            content=entity.content,
            context_type=entity.context_type.value if entity.context_type else None,
            context_id=entity.context_id,
            provider=entity.provider.value,
            model=entity.model,
            token_count=entity.token_count,
            created_at=normalize_to_utc(entity.created_at),
        )
