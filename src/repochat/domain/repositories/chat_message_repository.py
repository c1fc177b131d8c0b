"""Chat message repository protocol."""

from datetime import datetime
from enum import Enum
from typing import Protocol

from repochat.domain.entities import ActiveConversation, ChatMessage, ConversationKey


class HistoryScope(Enum):
    """履歴取得スコープの番兵値"""

    ANY = "any"


# get_messages / count_messages でスコープを限定しないことを表す
ANY_CONTEXT = HistoryScope.ANY

MessageScope = ConversationKey | None | HistoryScope


class ChatMessageRepository(Protocol):
    """チャット履歴リポジトリの抽象インターフェース

    メッセージの追記・取得・削除を抽象化し、
    永続化層の実装詳細を隠蔽する。
    メッセージは追記のみで、更新は行わない。
    """

    async def save_message(self, message: ChatMessage) -> None:
        """メッセージを 1 件追記する

        同一 ID のメッセージが既に存在する場合は何もしない（リトライ安全）。

        Args:
            message: 保存するメッセージ
        """
        ...

    async def save_messages(self, messages: list[ChatMessage]) -> None:
        """複数のメッセージを順に追記する

        Args:
            messages: 保存するメッセージ（古い順）
        """
        ...

    async def get_messages(
        self,
        scope: MessageScope = ANY_CONTEXT,
        limit: int = 100,
    ) -> list[ChatMessage]:
        """メッセージを取得する

        - ConversationKey: そのコンテキストの会話
        - None: コンテキストなし（一般）の会話
        - ANY_CONTEXT: コンテキストを問わない最新メッセージ

        Args:
            scope: 取得スコープ
            limit: 取得する最大件数（新しいものから数える）

        Returns:
            メッセージリスト（古い順）
        """
        ...

    async def count_messages(self, scope: MessageScope = ANY_CONTEXT) -> int:
        """スコープ内のメッセージ件数を返す"""
        ...

    async def delete_message(self, message_id: str) -> None:
        """メッセージを 1 件削除する

        Args:
            message_id: メッセージ ID
        """
        ...

    async def delete_conversation(self, key: ConversationKey) -> None:
        """コンテキストに紐づくメッセージをすべて削除する

        Args:
            key: 対象コンテキスト
        """
        ...

    async def delete_general(self) -> None:
        """コンテキストなしのメッセージをすべて削除する"""
        ...

    async def delete_all(self) -> None:
        """すべてのメッセージを削除する"""
        ...

    async def clean_older_than(self, days: int, now: datetime | None = None) -> int:
        """指定日数より古いメッセージを削除する

        Args:
            days: 保持日数
            now: 基準時刻（省略時は現在時刻）

        Returns:
            削除したメッセージ数
        """
        ...

    async def get_active_contexts(self) -> list[ActiveConversation]:
        """メッセージを持つコンテキストの一覧を取得する

        Returns:
            コンテキスト一覧（最終メッセージが新しい順）
        """
        ...
