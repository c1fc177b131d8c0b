"""Common fixtures for provider client tests."""

import json
from collections.abc import Callable

import httpx
import pytest

from repochat.infrastructure.secrets import EnvironmentSecretStore


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)

    def json_body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture
def secret_store() -> EnvironmentSecretStore:
    """Store with every credential configured."""
    return EnvironmentSecretStore(
        environ={
            "GEMINI_API_KEY": "gemini-test-key",
            "OLLAMA_ENDPOINT": "http://localhost:11434/",
            "OPENROUTER_API_KEY": "sk-or-test",
        }
    )


@pytest.fixture
def empty_secret_store() -> EnvironmentSecretStore:
    """Store with no credentials."""
    return EnvironmentSecretStore(environ={})


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    """Factory for recording mock transports."""
    return RecordingTransport
