"""Chat message entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from repochat.domain.entities.context import ContextType, ConversationKey

PREVIEW_LENGTH = 100


class MessageRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class AIProvider(str, Enum):
    """Interchangeable AI backends."""

    GEMINI = "gemini"
    OLLAMA = "ollama"
    OPENROUTER = "openrouter"


def _new_message_id() -> str:
    return f"msg_{uuid4().hex}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChatMessage:
    """Chat message entity.

    Messages are immutable once created. They are only ever deleted,
    never updated.

    Attributes:
        id: Unique message ID.
        role: Who authored the message.
        content: Message text.
        context_type: Kind of entity the conversation is bound to, or None.
        context_id: Canonical ID of that entity, or None.
        provider: Provider active when the message was created.
        model: Model active when the message was created.
        token_count: Tokens reported by the provider (assistant messages).
        created_at: Creation time (UTC).
    """

    role: MessageRole
    content: str
    provider: AIProvider
    model: str
    context_type: ContextType | None = None
    context_id: str | None = None
    token_count: int | None = None
    id: str = field(default_factory=_new_message_id)
    created_at: datetime = field(default_factory=_now)

    def __post_init__(self) -> None:
        if (self.context_type is None) != (self.context_id is None):
            raise ValueError(
                "context_type and context_id must both be set or both be None"
            )
        if self.context_id == "":
            raise ValueError("context_id must not be empty")

    @classmethod
    def create_user(
        cls,
        content: str,
        provider: AIProvider,
        model: str,
        key: ConversationKey | None = None,
    ) -> "ChatMessage":
        """Create a user message tagged with the current provider and context."""
        return cls(
            role=MessageRole.USER,
            content=content,
            provider=provider,
            model=model,
            context_type=key.context_type if key else None,
            context_id=key.context_id if key else None,
        )

    @classmethod
    def create_assistant(
        cls,
        content: str,
        provider: AIProvider,
        model: str,
        token_count: int | None = None,
        key: ConversationKey | None = None,
    ) -> "ChatMessage":
        """Create an assistant reply."""
        return cls(
            role=MessageRole.ASSISTANT,
            content=content,
            provider=provider,
            model=model,
            token_count=token_count,
            context_type=key.context_type if key else None,
            context_id=key.context_id if key else None,
        )

    @classmethod
    def create_system(
        cls, content: str, provider: AIProvider, model: str
    ) -> "ChatMessage":
        """Create a system message. System messages never carry a context."""
        return cls(
            role=MessageRole.SYSTEM,
            content=content,
            provider=provider,
            model=model,
        )

    @property
    def is_user(self) -> bool:
        return self.role is MessageRole.USER

    @property
    def is_assistant(self) -> bool:
        return self.role is MessageRole.ASSISTANT

    @property
    def is_system(self) -> bool:
        return self.role is MessageRole.SYSTEM

    @property
    def has_context(self) -> bool:
        return self.context_type is not None

    @property
    def context_key(self) -> ConversationKey | None:
        """Scope key of the conversation this message belongs to."""
        if self.context_type is None or self.context_id is None:
            return None
        return ConversationKey(self.context_type, self.context_id)

    @property
    def preview(self) -> str:
        """Short preview of the content for listings."""
        if len(self.content) <= PREVIEW_LENGTH:
            return self.content
        return self.content[:PREVIEW_LENGTH] + "..."
