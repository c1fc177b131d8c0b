"""Past conversation listing entity."""

from dataclasses import dataclass
from datetime import datetime

from repochat.domain.entities.context import ContextType, ConversationKey


@dataclass(frozen=True)
class ActiveConversation:
    """A bound conversation that has persisted messages.

    Attributes:
        context_type: Kind of the bound entity.
        context_id: Canonical ID of the bound entity.
        message_count: Number of stored messages.
        last_message_at: Timestamp of the newest message.
    """

    context_type: ContextType
    context_id: str
    message_count: int
    last_message_at: datetime

    @property
    def key(self) -> ConversationKey:
        return ConversationKey(self.context_type, self.context_id)
