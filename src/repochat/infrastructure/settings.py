"""In-process settings provider."""

import dataclasses
import logging
from typing import Any

from repochat.config import AssistantSettings

logger = logging.getLogger(__name__)


class StaticSettingsProvider:
    """Holds an ``AssistantSettings`` snapshot loaded from config.

    ``update`` swaps in a new immutable snapshot, so readers that already
    took the old one are unaffected.
    """

    def __init__(self, settings: AssistantSettings | None = None) -> None:
        self._settings = settings or AssistantSettings()

    def get_settings(self) -> AssistantSettings:
        return self._settings

    def update(self, **changes: Any) -> AssistantSettings:
        """Replace selected fields.

        Raises:
            TypeError: Unknown field name.
        """
        self._settings = dataclasses.replace(self._settings, **changes)
        logger.debug("Assistant settings updated: %s", sorted(changes))
        return self._settings
