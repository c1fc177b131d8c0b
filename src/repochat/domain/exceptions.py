"""Domain exceptions."""


class ConfigurationError(Exception):
    """A provider credential or endpoint is missing.

    Raised on first use of a provider client, never at construction.
    """


class ProviderError(Exception):
    """Base exception for AI provider failures."""


class ProviderAuthenticationError(ProviderError):
    """The backend rejected the credentials."""


class ProviderRateLimitError(ProviderError):
    """The backend throttled the request."""


class ProviderUnreachableError(ProviderError):
    """The backend could not be reached or did not answer in time."""


class ProviderResponseError(ProviderError):
    """The backend answered with a body that could not be interpreted."""


class PersistenceError(Exception):
    """Base exception for message storage failures."""


class ChatValidationError(Exception):
    """A chat operation was rejected locally, before any network call."""


class SessionBusyError(Exception):
    """Another request is already in flight for this chat session."""


class SessionClosedError(Exception):
    """The chat session must be opened before sending."""
