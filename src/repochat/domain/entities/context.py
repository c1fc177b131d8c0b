"""Conversation context entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from repochat.domain.entities.catalog import Entity


class ContextType(str, Enum):
    """Kind of entity a conversation can be bound to."""

    REPO = "repo"
    PACKAGE = "package"


@dataclass(frozen=True)
class ConversationKey:
    """Stable (type, id) pair identifying a bound conversation.

    Attributes:
        context_type: Kind of the bound entity.
        context_id: Canonical identifier (repository full name, package name).
    """

    context_type: ContextType
    context_id: str


@dataclass(frozen=True)
class ConversationContext:
    """Entity currently bound to a chat session.

    Transient: only the key is persisted, on each message.

    Attributes:
        entity: The bound repository or package.
        key: Key derived from the entity.
    """

    entity: Entity
    key: ConversationKey

    @property
    def context_type(self) -> ContextType:
        return self.key.context_type

    @property
    def context_id(self) -> str:
        return self.key.context_id
