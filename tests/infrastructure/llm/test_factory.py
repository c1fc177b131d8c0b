"""Tests for ProviderClientFactory."""

import httpx

from repochat.config import ProvidersConfig
from repochat.domain.entities import AIProvider
from repochat.infrastructure.llm import (
    GeminiClient,
    OllamaClient,
    OpenRouterClient,
    ProviderClientFactory,
)


class TestProviderClientFactory:
    """ProviderClientFactory tests."""

    def test_creates_each_provider(self, empty_secret_store) -> None:
        """Test that missing credentials do not fail construction."""
        factory = ProviderClientFactory(empty_secret_store, ProvidersConfig())

        assert isinstance(factory.create(AIProvider.GEMINI), GeminiClient)
        assert isinstance(factory.create(AIProvider.OLLAMA), OllamaClient)
        assert isinstance(factory.create(AIProvider.OPENROUTER), OpenRouterClient)

    def test_returns_fresh_instances(self, secret_store) -> None:
        factory = ProviderClientFactory(secret_store)

        assert factory.create(AIProvider.GEMINI) is not factory.create(
            AIProvider.GEMINI
        )

    def test_is_callable(self, secret_store) -> None:
        factory = ProviderClientFactory(secret_store)

        assert isinstance(factory(AIProvider.OLLAMA), OllamaClient)

    async def test_uses_configured_base_url(
        self, secret_store, make_transport
    ) -> None:
        transport = make_transport(
            lambda request: httpx.Response(
                200,
                json={"candidates": [{"content": {"parts": [{"text": "OK"}]}}]},
            )
        )
        factory = ProviderClientFactory(
            secret_store,
            ProvidersConfig(gemini_base_url="https://gemini.internal/v1"),
            transport=transport,
        )

        assert await factory.create(AIProvider.GEMINI).test_connection()
        assert transport.requests[0].url.host == "gemini.internal"
