"""Shared plumbing for HTTP provider clients."""

import logging
from typing import Any

import httpx

from repochat.domain.entities import AIProvider
from repochat.domain.exceptions import (
    ConfigurationError,
    ProviderAuthenticationError,
    ProviderError,
    ProviderRateLimitError,
    ProviderResponseError,
    ProviderUnreachableError,
)
from repochat.domain.services import SecretStore
from repochat.infrastructure.llm.transport import RetryTransport

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Extract the backend's error message, falling back to the reason phrase."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return response.reason_phrase


def raise_for_status(response: httpx.Response, name: str) -> None:
    """Translate an HTTP error status into a provider exception.

    Args:
        response: Backend response.
        name: Display name of the backend for messages.

    Raises:
        ProviderAuthenticationError: 401 / 403.
        ProviderRateLimitError: 429.
        ProviderUnreachableError: 5xx.
        ProviderError: Any other 4xx.
    """
    status = response.status_code
    if status < 400:
        return
    message = f"{name} API error ({status}): {_error_message(response)}"
    if status in (401, 403):
        raise ProviderAuthenticationError(message)
    if status == 429:
        raise ProviderRateLimitError(message)
    if status >= 500:
        raise ProviderUnreachableError(message)
    raise ProviderError(message)


class HTTPProviderClient:
    """Base class for providers spoken to directly over HTTP.

    The credential (API key or endpoint) is read from the secret store on
    first use and cached for the lifetime of this instance only.
    """

    provider: AIProvider
    display_name: str
    secret_key: str

    def __init__(
        self,
        secret_store: SecretStore,
        *,
        timeout_seconds: float = 30.0,
        retries: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            secret_store: Source of the credential.
            timeout_seconds: Per-request HTTP timeout.
            retries: Transport-level retries for network errors and 5xx.
            transport: Underlying transport (tests inject a mock here).
        """
        self._secret_store = secret_store
        self._timeout_seconds = timeout_seconds
        self._retries = retries
        self._transport = transport
        self._credential: str | None = None

    async def _get_credential(self) -> str:
        """Load the credential lazily.

        Raises:
            ConfigurationError: The credential is not set.
        """
        if self._credential is None:
            value = await self._secret_store.get_value(self.secret_key)
            if not value:
                raise ConfigurationError(
                    f"{self.display_name} {self._credential_label} not configured"
                )
            self._credential = value
        return self._credential

    @property
    def _credential_label(self) -> str:
        return "API key"

    def _create_http_client(self) -> httpx.AsyncClient:
        transport = RetryTransport(self._transport, retries=self._retries)
        return httpx.AsyncClient(transport=transport, timeout=self._timeout_seconds)

    async def _request_json(
        self,
        method: str,
        url: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        """Send a request and decode the JSON body.

        Raises:
            ProviderUnreachableError: Network failure or timeout.
            ProviderResponseError: The body is not JSON.
        """
        try:
            async with self._create_http_client() as client:
                response = await client.request(method, url, json=json, params=params)
        except httpx.TimeoutException as e:
            logger.warning("%s request timed out: %s", self.display_name, e)
            raise ProviderUnreachableError(
                f"{self.display_name} request timed out"
            ) from e
        except httpx.RequestError as e:
            logger.warning("%s request failed: %s", self.display_name, e)
            raise ProviderUnreachableError(
                f"Could not reach {self.display_name}: {e}"
            ) from e

        raise_for_status(response, self.display_name)

        try:
            return response.json()
        except ValueError as e:
            raise ProviderResponseError(
                f"{self.display_name} returned a non-JSON response"
            ) from e

    async def test_connection(self) -> bool:
        """Check that the backend is usable. Never raises."""
        try:
            return await self._probe()
        except Exception as e:
            logger.warning("%s connection test failed: %s", self.display_name, e)
            return False

    async def _probe(self) -> bool:
        raise NotImplementedError
