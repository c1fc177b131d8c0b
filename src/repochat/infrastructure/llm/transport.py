"""Retrying httpx transport for provider requests."""

import asyncio
import logging

import httpx

logger = logging.getLogger(__name__)


def backoff_delay(
    attempt: int,
    *,
    base_seconds: float = 0.5,
    factor: float = 2.0,
    cap_seconds: float = 8.0,
) -> float:
    """Return the exponential backoff delay before retry ``attempt``.

    Args:
        attempt: Zero-based retry number.
        base_seconds: Delay before the first retry.
        factor: Growth factor per retry.
        cap_seconds: Upper bound for any single delay.

    Returns:
        Delay in seconds.
    """
    if attempt < 0:
        raise ValueError("attempt must be >= 0")
    return min(cap_seconds, base_seconds * factor**attempt)


class RetryTransport(httpx.AsyncBaseTransport):
    """Wraps a transport and retries network failures and 5xx responses.

    4xx responses are returned immediately; they never succeed on retry.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        *,
        retries: int = 2,
        base_seconds: float = 0.5,
    ) -> None:
        """Initialize the transport.

        Args:
            transport: Wrapped transport (defaults to a plain HTTP transport).
            retries: Maximum number of retries after the first attempt.
            base_seconds: Delay before the first retry.
        """
        self._owns_transport = transport is None
        self._transport = transport or httpx.AsyncHTTPTransport()
        self._retries = retries
        self._base_seconds = base_seconds

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        attempt = 0
        while True:
            try:
                response = await self._transport.handle_async_request(request)
            except httpx.TransportError as e:
                if attempt >= self._retries:
                    raise
                logger.warning(
                    "Request to %s failed (%s), retrying (%d/%d)",
                    request.url.host,
                    e,
                    attempt + 1,
                    self._retries,
                )
            else:
                if response.status_code < 500 or attempt >= self._retries:
                    return response
                logger.warning(
                    "Request to %s returned %d, retrying (%d/%d)",
                    request.url.host,
                    response.status_code,
                    attempt + 1,
                    self._retries,
                )
                await response.aclose()

            await asyncio.sleep(
                backoff_delay(attempt, base_seconds=self._base_seconds)
            )
            attempt += 1

    async def aclose(self) -> None:
        if self._owns_transport:
            await self._transport.aclose()
