"""Credential storage backed by environment variables."""

import logging
import os
from collections.abc import Mapping
from enum import Enum

logger = logging.getLogger(__name__)


class SecretKey(str, Enum):
    """Names of the values held in the secret store."""

    GEMINI_API_KEY = "gemini_api_key"
    OLLAMA_ENDPOINT = "ollama_endpoint"
    OPENROUTER_API_KEY = "openrouter_api_key"


DEFAULT_ENV_NAMES: dict[str, str] = {
    SecretKey.GEMINI_API_KEY.value: "GEMINI_API_KEY",
    SecretKey.OLLAMA_ENDPOINT.value: "OLLAMA_ENDPOINT",
    SecretKey.OPENROUTER_API_KEY.value: "OPENROUTER_API_KEY",
}

MASK_CHAR = "•"
MASK_VISIBLE_CHARS = 4


class EnvironmentSecretStore:
    """Secret store reading each key from an environment variable.

    The key to variable mapping defaults to ``DEFAULT_ENV_NAMES`` and can
    be overridden per key from the ``secrets.env_names`` config section.
    """

    def __init__(
        self,
        env_names: Mapping[str, str] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            env_names: Overrides for the key to variable mapping.
            environ: Environment to read from (defaults to ``os.environ``).
        """
        self._env_names = {**DEFAULT_ENV_NAMES, **(env_names or {})}
        self._environ = environ if environ is not None else os.environ

    async def get_value(self, key: str) -> str | None:
        """Return the value for ``key``; unset and empty both read as None."""
        env_name = self._env_names.get(key)
        if env_name is None:
            logger.warning("Unknown secret key: %s", key)
            return None
        value = self._environ.get(env_name)
        if not value:
            logger.debug("Secret %s is not set (%s)", key, env_name)
            return None
        return value

    async def has_value(self, key: str) -> bool:
        return await self.get_value(key) is not None


def mask_sensitive_value(value: str | None) -> str:
    """Mask a credential for display.

    e.g. "sk-1234567890abcdef" -> "sk-1•••••••••••cdef"

    Args:
        value: Credential, possibly missing.

    Returns:
        The first and last four characters around at least eight mask
        characters; values shorter than eight are fully masked.
    """
    if not value or len(value) < 8:
        return MASK_CHAR * 8
    masked = MASK_CHAR * max(8, len(value) - MASK_VISIBLE_CHARS * 2)
    return f"{value[:MASK_VISIBLE_CHARS]}{masked}{value[-MASK_VISIBLE_CHARS:]}"
