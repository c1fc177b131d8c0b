"""SQLModel table definitions."""

from datetime import datetime

from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel

from repochat.infrastructure.persistence.datetime_utils import utc_now


class ChatMessageModel(SQLModel, table=True):
    """チャットメッセージテーブル

    context_type / context_id は両方 NULL（一般会話）か両方非 NULL。
    CHECK 制約で保証する。
    """

    __tablename__ = "ai_chat_messages"
    __table_args__ = (
        CheckConstraint(
            "(context_type IS NULL AND context_id IS NULL)"
            " OR (context_type IS NOT NULL AND context_id IS NOT NULL"
            " AND context_id != '')",
            name="ck_ai_chat_messages_context_pair",
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    message_id: str = Field(unique=True, index=True)
    role: str
    content: str
    context_type: str | None = Field(default=None, index=True)
    context_id: str | None = Field(default=None, index=True)
    provider: str
    model: str
    token_count: int | None = None
    created_at: datetime = Field(default_factory=utc_now, index=True)
