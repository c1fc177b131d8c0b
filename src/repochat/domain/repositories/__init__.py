"""Domain repositories."""

from repochat.domain.repositories.chat_message_repository import (
    ANY_CONTEXT,
    ChatMessageRepository,
    HistoryScope,
    MessageScope,
)

__all__ = [
    "ANY_CONTEXT",
    "ChatMessageRepository",
    "HistoryScope",
    "MessageScope",
]
