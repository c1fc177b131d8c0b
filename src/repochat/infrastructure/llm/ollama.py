"""Ollama provider client."""

import logging
from typing import Any

from repochat.domain.entities import AIProvider, ChatTurn, ProviderResponse
from repochat.domain.exceptions import ProviderResponseError
from repochat.infrastructure.llm.base import HTTPProviderClient
from repochat.infrastructure.secrets import SecretKey

logger = logging.getLogger(__name__)


class OllamaClient(HTTPProviderClient):
    """Client for a local or remote Ollama server.

    Unlike the hosted providers, the credential here is the server
    endpoint, e.g. ``http://localhost:11434``.
    """

    provider = AIProvider.OLLAMA
    display_name = "Ollama"
    secret_key = SecretKey.OLLAMA_ENDPOINT.value

    @property
    def _credential_label(self) -> str:
        return "endpoint"

    async def _endpoint(self) -> str:
        return (await self._get_credential()).rstrip("/")

    async def send_message(
        self,
        turns: list[ChatTurn],
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> ProviderResponse:
        """Send the conversation to Ollama's chat endpoint.

        Raises:
            ConfigurationError: Endpoint is not configured.
            ProviderError: Backend call failed.
        """
        endpoint = await self._endpoint()
        payload = {
            "model": model,
            "messages": [
                {"role": turn.role.value, "content": turn.content} for turn in turns
            ],
            "options": {"num_predict": max_tokens, "temperature": temperature},
            "stream": False,
        }

        logger.debug("Ollama request: model=%s, turns=%d", model, len(turns))
        data = await self._request_json("POST", f"{endpoint}/api/chat", json=payload)

        try:
            content = data["message"]["content"]
        except (KeyError, TypeError) as e:
            raise ProviderResponseError("No response from Ollama") from e
        if not isinstance(content, str):
            raise ProviderResponseError("No response from Ollama")

        return ProviderResponse(
            content=content,
            model=model,
            provider=self.provider,
            token_count=_token_count(data),
        )

    async def list_models(self) -> list[str]:
        """List models installed on the server.

        Returns:
            Model names, or an empty list if the server cannot be queried.
        """
        try:
            endpoint = await self._endpoint()
            data = await self._request_json("GET", f"{endpoint}/api/tags")
            return [model["name"] for model in data.get("models", [])]
        except Exception as e:
            logger.warning("Failed to list Ollama models: %s", e)
            return []

    async def _probe(self) -> bool:
        endpoint = await self._endpoint()
        await self._request_json("GET", f"{endpoint}/api/tags")
        return True


def _token_count(data: dict[str, Any]) -> int | None:
    prompt = data.get("prompt_eval_count")
    completion = data.get("eval_count")
    if prompt is None and completion is None:
        return None
    return (prompt or 0) + (completion or 0)
