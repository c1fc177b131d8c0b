"""Periodic deletion of old chat messages."""

import asyncio
import logging

from repochat.config import RetentionConfig
from repochat.domain.repositories import ChatMessageRepository

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """Deletes messages older than the configured retention period.

    ``start`` runs ``sweep`` every ``interval_seconds`` until ``stop`` is
    called. A failed sweep is logged and the loop carries on.
    """

    def __init__(
        self,
        message_repository: ChatMessageRepository,
        config: RetentionConfig,
    ) -> None:
        """Initialize RetentionSweeper.

        Args:
            message_repository: Store to clean.
            config: Retention period and sweep interval.
        """
        self._repository = message_repository
        self._config = config
        # Set while stopped, cleared while running.
        self._stop_event = asyncio.Event()
        self._stop_event.set()

    async def sweep(self) -> int:
        """Delete messages older than ``config.days``.

        Returns:
            Number of deleted messages.
        """
        deleted = await self._repository.clean_older_than(self._config.days)
        if deleted:
            logger.info(
                "Retention sweep removed %d messages older than %d days",
                deleted,
                self._config.days,
            )
        return deleted

    async def start(self) -> None:
        """Run sweeps until stopped.

        Returns immediately with a warning if already running.
        """
        if not self._stop_event.is_set():
            logger.warning("RetentionSweeper.start() called while running; ignoring.")
            return
        self._stop_event.clear()

        while not self._stop_event.is_set():
            try:
                await self.sweep()
            except Exception as e:
                logger.error(
                    "Retention sweep failed (interval=%ds): %s",
                    self._config.interval_seconds,
                    e,
                )

            try:
                await asyncio.wait_for(
                    self._stop_event.wait(),
                    timeout=self._config.interval_seconds,
                )
                break
            except asyncio.TimeoutError:
                pass

    async def stop(self) -> None:
        """Signal the loop to stop after the current sweep."""
        self._stop_event.set()

    @property
    def is_running(self) -> bool:
        return not self._stop_event.is_set()
