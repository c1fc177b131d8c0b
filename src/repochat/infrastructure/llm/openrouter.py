"""OpenRouter provider client (OpenAI-compatible, via LiteLLM)."""

import logging

import litellm
from litellm.exceptions import (
    APIConnectionError,
    AuthenticationError,
    InternalServerError,
    PermissionDeniedError,
    RateLimitError,
    ServiceUnavailableError,
    Timeout,
)

from repochat.domain.entities import (
    AIProvider,
    ChatTurn,
    MessageRole,
    ProviderResponse,
)
from repochat.domain.exceptions import (
    ConfigurationError,
    ProviderAuthenticationError,
    ProviderError,
    ProviderRateLimitError,
    ProviderResponseError,
    ProviderUnreachableError,
)
from repochat.domain.services import SecretStore
from repochat.infrastructure.secrets import SecretKey

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_PROBE_MODEL = "anthropic/claude-3-5-sonnet"
PROBE_PROMPT = "Hello, please respond with OK"


class OpenRouterClient:
    """LiteLLM wrapper for OpenRouter.

    OpenRouter speaks the OpenAI chat completions protocol, so requests go
    through LiteLLM's OpenAI-compatible route with a custom ``api_base``.
    The API key is read from the secret store on first use.
    """

    provider = AIProvider.OPENROUTER
    display_name = "OpenRouter"

    def __init__(
        self,
        secret_store: SecretStore,
        *,
        base_url: str = DEFAULT_BASE_URL,
        referer: str = "https://repochat.app",
        title: str = "repochat",
        timeout_seconds: float = 30.0,
        retries: int = 2,
        probe_model: str = DEFAULT_PROBE_MODEL,
    ) -> None:
        """Initialize the client.

        Args:
            secret_store: Source of the API key.
            base_url: OpenRouter API base URL.
            referer: Value of the ``HTTP-Referer`` header.
            title: Value of the ``X-Title`` header.
            timeout_seconds: Per-request timeout.
            retries: Retries LiteLLM performs on transient failures.
            probe_model: Model used by ``test_connection``.
        """
        self._secret_store = secret_store
        self._base_url = base_url.rstrip("/")
        self._headers = {"HTTP-Referer": referer, "X-Title": title}
        self._timeout_seconds = timeout_seconds
        self._retries = retries
        self._probe_model = probe_model
        self._api_key: str | None = None

    async def _get_api_key(self) -> str:
        if self._api_key is None:
            value = await self._secret_store.get_value(
                SecretKey.OPENROUTER_API_KEY.value
            )
            if not value:
                raise ConfigurationError("OpenRouter API key not configured")
            self._api_key = value
        return self._api_key

    async def send_message(
        self,
        turns: list[ChatTurn],
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> ProviderResponse:
        """Execute chat completion.

        Args:
            turns: Conversation turns, oldest first.
            model: OpenRouter model id, e.g. ``anthropic/claude-3-5-sonnet``.
            max_tokens: Upper bound on generated tokens.
            temperature: Sampling temperature.

        Returns:
            Normalized response.

        Raises:
            ConfigurationError: API key is not configured.
            ProviderAuthenticationError: Invalid API key.
            ProviderRateLimitError: Rate limit exceeded.
            ProviderUnreachableError: Connection failure, timeout or 5xx.
            ProviderError: Other API errors.
        """
        api_key = await self._get_api_key()
        params = {
            "model": model,
            "messages": [
                {"role": turn.role.value, "content": turn.content} for turn in turns
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
            "custom_llm_provider": "openai",
            "api_base": self._base_url,
            "api_key": api_key,
            "extra_headers": self._headers,
            "timeout": self._timeout_seconds,
            "num_retries": self._retries,
        }

        logger.debug("OpenRouter request: model=%s, turns=%d", model, len(turns))

        try:
            response = await litellm.acompletion(**params)
        except (AuthenticationError, PermissionDeniedError) as e:
            logger.error("OpenRouter authentication error: %s", e)
            raise ProviderAuthenticationError(str(e)) from e
        except RateLimitError as e:
            logger.warning("OpenRouter rate limit exceeded: %s", e)
            raise ProviderRateLimitError(str(e)) from e
        except (
            Timeout,
            APIConnectionError,
            ServiceUnavailableError,
            InternalServerError,
        ) as e:
            logger.warning("OpenRouter unreachable: %s", e)
            raise ProviderUnreachableError(str(e)) from e
        except Exception as e:
            logger.error("OpenRouter error: %s", e)
            raise ProviderError(str(e)) from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise ProviderResponseError("No response from OpenRouter") from e
        if not isinstance(content, str):
            raise ProviderResponseError("No response from OpenRouter")

        usage = getattr(response, "usage", None)
        logger.debug("OpenRouter response received")
        return ProviderResponse(
            content=content,
            model=model,
            provider=self.provider,
            token_count=getattr(usage, "total_tokens", None),
        )

    async def test_connection(self) -> bool:
        """Send a short probe. Never raises."""
        try:
            response = await self.send_message(
                [ChatTurn(role=MessageRole.USER, content=PROBE_PROMPT)],
                model=self._probe_model,
                max_tokens=16,
                temperature=0.0,
            )
        except Exception as e:
            logger.warning("OpenRouter connection test failed: %s", e)
            return False
        return len(response.content) > 0
