"""Application services."""

from repochat.application.services.chat_session import (
    ChatSessionController,
    SessionState,
    describe_error,
)
from repochat.application.services.retention import RetentionSweeper

__all__ = [
    "ChatSessionController",
    "RetentionSweeper",
    "SessionState",
    "describe_error",
]
