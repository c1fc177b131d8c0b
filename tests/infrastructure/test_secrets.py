"""Tests for the environment secret store."""

import pytest

from repochat.infrastructure.secrets import (
    EnvironmentSecretStore,
    SecretKey,
    mask_sensitive_value,
)


class TestEnvironmentSecretStore:
    """EnvironmentSecretStore tests."""

    async def test_default_names(self) -> None:
        store = EnvironmentSecretStore(environ={"GEMINI_API_KEY": "abc"})

        assert await store.get_value(SecretKey.GEMINI_API_KEY.value) == "abc"
        assert await store.get_value(SecretKey.OLLAMA_ENDPOINT.value) is None

    async def test_custom_names(self) -> None:
        store = EnvironmentSecretStore(
            env_names={"ollama_endpoint": "MY_OLLAMA"},
            environ={"MY_OLLAMA": "http://gpu-box:11434"},
        )

        assert await store.get_value("ollama_endpoint") == "http://gpu-box:11434"

    async def test_empty_value_is_unset(self) -> None:
        store = EnvironmentSecretStore(environ={"OPENROUTER_API_KEY": ""})

        assert await store.get_value("openrouter_api_key") is None
        assert await store.has_value("openrouter_api_key") is False

    async def test_unknown_key(self) -> None:
        store = EnvironmentSecretStore(environ={})

        assert await store.get_value("github_token") is None

    async def test_reads_process_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "from-env")

        assert await EnvironmentSecretStore().get_value("gemini_api_key") == "from-env"


class TestMaskSensitiveValue:
    """mask_sensitive_value tests."""

    def test_masks_middle(self) -> None:
        assert mask_sensitive_value("sk-1234567890abcdef") == (
            "sk-1" + "•" * 11 + "cdef"
        )

    def test_minimum_mask_length(self) -> None:
        assert mask_sensitive_value("abcdefghij") == "abcd" + "•" * 8 + "ghij"

    @pytest.mark.parametrize("value", [None, "", "short"])
    def test_short_values_fully_masked(self, value: str | None) -> None:
        assert mask_sensitive_value(value) == "•" * 8
