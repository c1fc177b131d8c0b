"""Gemini provider client."""

import logging
from collections.abc import Sequence
from typing import Any

from repochat.domain.entities import (
    AIProvider,
    ChatTurn,
    MessageRole,
    ProviderResponse,
)
from repochat.domain.exceptions import ProviderResponseError
from repochat.infrastructure.llm.base import HTTPProviderClient
from repochat.infrastructure.secrets import SecretKey

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_PROBE_MODEL = "gemini-flash"
PROBE_PROMPT = "Hello, please respond with OK"


def merge_consecutive_turns(
    contents: Sequence[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Collapse consecutive same-role turns into one.

    Gemini rejects two turns in a row from the same role. When a turn has
    the same role as the previous accumulated turn, its parts are appended
    to that turn in order; otherwise a new turn is started. The input is
    left untouched.

    Args:
        contents: Gemini turns, ``{"role": ..., "parts": [{"text": ...}]}``.

    Returns:
        Turns with strictly alternating roles.
    """
    merged: list[dict[str, Any]] = []
    for content in contents:
        if merged and merged[-1]["role"] == content["role"]:
            merged[-1]["parts"].extend(dict(part) for part in content["parts"])
        else:
            merged.append(
                {
                    "role": content["role"],
                    "parts": [dict(part) for part in content["parts"]],
                }
            )
    return merged


def to_gemini_contents(turns: Sequence[ChatTurn]) -> list[dict[str, Any]]:
    """Map chat turns onto Gemini's user/model roles.

    Gemini has no system role in ``contents``; system text is sent as a
    user turn and merged with the user turn that follows.
    """
    contents = [
        {
            "role": "model" if turn.role is MessageRole.ASSISTANT else "user",
            "parts": [{"text": turn.content}],
        }
        for turn in turns
    ]
    return merge_consecutive_turns(contents)


class GeminiClient(HTTPProviderClient):
    """Client for the Gemini ``generateContent`` REST endpoint."""

    provider = AIProvider.GEMINI
    display_name = "Gemini"
    secret_key = SecretKey.GEMINI_API_KEY.value

    def __init__(
        self,
        *args: Any,
        base_url: str = DEFAULT_BASE_URL,
        probe_model: str = DEFAULT_PROBE_MODEL,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._base_url = base_url.rstrip("/")
        self._probe_model = probe_model

    async def send_message(
        self,
        turns: list[ChatTurn],
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> ProviderResponse:
        """Send the conversation to Gemini.

        Raises:
            ConfigurationError: API key is not configured.
            ProviderError: Backend call failed.
        """
        api_key = await self._get_credential()
        payload = {
            "contents": to_gemini_contents(turns),
            "generationConfig": {
                "maxOutputTokens": max_tokens,
                "temperature": temperature,
            },
        }

        logger.debug("Gemini request: model=%s, turns=%d", model, len(turns))
        data = await self._request_json(
            "POST",
            f"{self._base_url}/models/{model}:generateContent",
            json=payload,
            params={"key": api_key},
        )

        try:
            content = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderResponseError("No response from Gemini API") from e

        usage = data.get("usageMetadata") or {}
        return ProviderResponse(
            content=content,
            model=model,
            provider=self.provider,
            token_count=usage.get("totalTokenCount"),
        )

    async def _probe(self) -> bool:
        response = await self.send_message(
            [ChatTurn(role=MessageRole.USER, content=PROBE_PROMPT)],
            model=self._probe_model,
            max_tokens=16,
            temperature=0.0,
        )
        return len(response.content) > 0
