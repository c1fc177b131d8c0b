"""Provider client factory."""

import logging

import httpx

from repochat.config import ProvidersConfig
from repochat.domain.entities import AIProvider
from repochat.domain.services import ProviderClient, SecretStore
from repochat.infrastructure.llm.gemini import GeminiClient
from repochat.infrastructure.llm.ollama import OllamaClient
from repochat.infrastructure.llm.openrouter import OpenRouterClient

logger = logging.getLogger(__name__)


class ProviderClientFactory:
    """Builds provider clients from explicit configuration.

    Every call to ``create`` returns a new client; callers that want reuse
    keep the instance themselves.
    """

    def __init__(
        self,
        secret_store: SecretStore,
        config: ProvidersConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the factory.

        Args:
            secret_store: Credential source handed to each client.
            config: Base URLs, headers, retries and timeouts.
            transport: httpx transport for the HTTP clients (tests only).
        """
        self._secret_store = secret_store
        self._config = config or ProvidersConfig()
        self._transport = transport

    def create(self, provider: AIProvider) -> ProviderClient:
        """Create a client for ``provider``.

        Raises:
            ValueError: Unknown provider.
        """
        logger.debug("Creating %s client", provider.value)
        if provider is AIProvider.GEMINI:
            return GeminiClient(
                self._secret_store,
                base_url=self._config.gemini_base_url,
                timeout_seconds=self._config.timeout_seconds,
                retries=self._config.http_retries,
                transport=self._transport,
            )
        if provider is AIProvider.OLLAMA:
            return self.create_ollama()
        if provider is AIProvider.OPENROUTER:
            return OpenRouterClient(
                self._secret_store,
                base_url=self._config.openrouter_base_url,
                referer=self._config.openrouter_referer,
                title=self._config.openrouter_title,
                timeout_seconds=self._config.timeout_seconds,
                retries=self._config.http_retries,
            )
        raise ValueError(f"Unknown provider: {provider}")

    def create_ollama(self) -> OllamaClient:
        """Create an Ollama client, which also exposes ``list_models``."""
        return OllamaClient(
            self._secret_store,
            timeout_seconds=self._config.timeout_seconds,
            retries=self._config.http_retries,
            transport=self._transport,
        )

    __call__ = create
