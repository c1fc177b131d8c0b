"""Domain services."""

from repochat.domain.services.context_binder import (
    ConversationContextBinder,
    derive_conversation_key,
)
from repochat.domain.services.conversation_history import build_conversation_history
from repochat.domain.services.protocols import (
    ProviderClient,
    SecretStore,
    SettingsProvider,
)

__all__ = [
    "ConversationContextBinder",
    "ProviderClient",
    "SecretStore",
    "SettingsProvider",
    "build_conversation_history",
    "derive_conversation_key",
]
