"""Persistence infrastructure."""

from repochat.infrastructure.persistence.chat_message_repository import (
    SQLiteChatMessageRepository,
)
from repochat.infrastructure.persistence.database import DatabaseManager
from repochat.infrastructure.persistence.exceptions import (
    DatabaseError,
    PersistenceError,
)
from repochat.infrastructure.persistence.models import ChatMessageModel

__all__ = [
    "ChatMessageModel",
    "DatabaseError",
    "DatabaseManager",
    "PersistenceError",
    "SQLiteChatMessageRepository",
]
