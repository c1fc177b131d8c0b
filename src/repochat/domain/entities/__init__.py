"""Domain entities."""

from repochat.domain.entities.catalog import (
    Entity,
    Package,
    Repository,
    format_count,
    time_ago,
)
from repochat.domain.entities.chat_message import AIProvider, ChatMessage, MessageRole
from repochat.domain.entities.context import (
    ContextType,
    ConversationContext,
    ConversationKey,
)
from repochat.domain.entities.conversation import ActiveConversation
from repochat.domain.entities.llm_result import ChatTurn, ProviderResponse

__all__ = [
    "AIProvider",
    "ActiveConversation",
    "ChatMessage",
    "ChatTurn",
    "ContextType",
    "ConversationContext",
    "ConversationKey",
    "Entity",
    "MessageRole",
    "Package",
    "ProviderResponse",
    "Repository",
    "format_count",
    "time_ago",
]
