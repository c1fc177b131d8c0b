"""Provider request/response values."""

from dataclasses import dataclass

from repochat.domain.entities.chat_message import AIProvider, MessageRole


@dataclass(frozen=True)
class ChatTurn:
    """One role-tagged turn sent to a provider.

    Attributes:
        role: Turn author.
        content: Turn text.
    """

    role: MessageRole
    content: str


@dataclass(frozen=True)
class ProviderResponse:
    """Normalized provider reply.

    Attributes:
        content: The generated text.
        model: Model that produced the reply.
        provider: Provider that produced the reply.
        token_count: Total tokens reported by the backend (optional).
    """

    content: str
    model: str
    provider: AIProvider
    token_count: int | None = None
