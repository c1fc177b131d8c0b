"""Domain service protocols."""

from typing import Protocol

from repochat.config.models import AssistantSettings
from repochat.domain.entities import ChatTurn, ProviderResponse


class ProviderClient(Protocol):
    """AI backend abstraction.

    Each implementation maps ``ChatTurn`` roles onto its backend's wire
    format and normalizes the reply into a ``ProviderResponse``.
    """

    async def send_message(
        self,
        turns: list[ChatTurn],
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> ProviderResponse:
        """Send a conversation and return the backend's reply.

        Args:
            turns: Conversation turns, oldest first.
            model: Backend model name.
            max_tokens: Response token budget.
            temperature: Sampling temperature.

        Returns:
            Normalized response.

        Raises:
            ConfigurationError: Credential or endpoint is not configured.
            ProviderAuthenticationError: Credentials were rejected.
            ProviderRateLimitError: Request was throttled.
            ProviderUnreachableError: Backend could not be reached.
            ProviderResponseError: Reply could not be interpreted.
        """
        ...

    async def test_connection(self) -> bool:
        """Check that the backend is usable. Never raises.

        Returns:
            True if the backend answered, False on any failure.
        """
        ...


class SettingsProvider(Protocol):
    """Pull-based access to the user's assistant settings."""

    def get_settings(self) -> AssistantSettings:
        """Return the current settings snapshot."""
        ...


class SecretStore(Protocol):
    """Secure key-value store for credentials and endpoints."""

    async def get_value(self, key: str) -> str | None:
        """Return the stored value, or None if it is not set."""
        ...
