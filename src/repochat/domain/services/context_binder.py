"""Conversation context binding."""

from repochat.domain.entities import (
    ContextType,
    ConversationContext,
    ConversationKey,
    Entity,
)


def derive_conversation_key(entity: Entity) -> ConversationKey:
    """Derive the stable conversation key for an entity.

    The same entity always yields the same key, so history stored under
    it can be found again after a restart.

    Args:
        entity: Repository or package.

    Returns:
        (context_type, context_id) key.

    Raises:
        ValueError: The entity has an empty identifier.
    """
    if entity.kind not in (ContextType.REPO, ContextType.PACKAGE):
        raise ValueError(f"Unsupported entity kind: {entity.kind!r}")
    if not entity.canonical_id:
        raise ValueError(f"{entity.kind.value} identifier must not be empty")
    return ConversationKey(entity.kind, entity.canonical_id)


class ConversationContextBinder:
    """Holds the entity a chat session is currently bound to."""

    def __init__(self) -> None:
        self._context: ConversationContext | None = None

    @property
    def context(self) -> ConversationContext | None:
        return self._context

    @property
    def entity(self) -> Entity | None:
        return self._context.entity if self._context else None

    @property
    def key(self) -> ConversationKey | None:
        return self._context.key if self._context else None

    def set_context(self, entity: Entity | None) -> ConversationContext | None:
        """Bind to an entity, or unbind when ``entity`` is None.

        Args:
            entity: Entity to bind.

        Returns:
            The new context, or None when unbound.
        """
        if entity is None:
            self.clear_context()
            return None
        self._context = ConversationContext(
            entity=entity, key=derive_conversation_key(entity)
        )
        return self._context

    def clear_context(self) -> None:
        """Reset to the general (unbound) conversation."""
        self._context = None
