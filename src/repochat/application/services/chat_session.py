"""Chat session controller.

State machine driving one assistant conversation: it binds the session to
a repository or package, loads and persists history, and dispatches turns
to the active AI provider.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager
from enum import Enum

from repochat.domain.entities import (
    AIProvider,
    ChatMessage,
    ChatTurn,
    ContextType,
    ConversationContext,
    ConversationKey,
    Entity,
    MessageRole,
    ProviderResponse,
)
from repochat.domain.exceptions import (
    ChatValidationError,
    ConfigurationError,
    PersistenceError,
    ProviderError,
    ProviderUnreachableError,
    SessionBusyError,
    SessionClosedError,
)
from repochat.domain.repositories import ChatMessageRepository
from repochat.domain.services import (
    ConversationContextBinder,
    ProviderClient,
    SettingsProvider,
    build_conversation_history,
)
from repochat.infrastructure.llm.prompts import (
    compare_alternatives_prompt,
    contextual_question_prompt,
    explain_prompt,
    summarize_release_prompt,
    system_prompt_for,
)

logger = logging.getLogger(__name__)

HISTORY_LOAD_ERROR = "Failed to load conversation history"


class SessionState(str, Enum):
    """Lifecycle state of a chat session."""

    CLOSED = "closed"
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"


def describe_error(error: Exception, fallback: str) -> str:
    """Collapse an exception into the single string shown to the user.

    Provider and configuration errors already carry a readable message;
    anything else is reported with ``fallback``.
    """
    if isinstance(error, (ProviderError, ConfigurationError)) and str(error):
        return str(error)
    return fallback


class ChatSessionController:
    """Controller for one assistant chat session.

    States: CLOSED, then IDLE / LOADING / ERROR while open. Only
    ``open_chat`` leaves CLOSED. Only one operation may be in flight at a
    time: an overlapping open, history load or clear, send, explain,
    compare or summarize raises ``SessionBusyError`` without touching the
    session. Provider failures never propagate: they are turned into a
    message exposed through ``error`` and the ERROR state, which lasts
    until the next request or history load starts.

    Messages are appended to memory before they are persisted. A storage
    failure is logged and the message stays visible in the session, even
    though it will be missing after a restart.
    """

    def __init__(
        self,
        message_repository: ChatMessageRepository,
        settings_provider: SettingsProvider,
        client_factory: Callable[[AIProvider], ProviderClient],
        binder: ConversationContextBinder | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            message_repository: Durable message store.
            settings_provider: Source of provider, model and limits.
            client_factory: Builds a client for a provider on first use.
            binder: Context binder (a fresh one by default).
        """
        self._repository = message_repository
        self._settings_provider = settings_provider
        self._client_factory = client_factory
        self._binder = binder or ConversationContextBinder()
        self._clients: dict[AIProvider, ProviderClient] = {}
        self._messages: list[ChatMessage] = []
        self._state = SessionState.CLOSED
        self._error: str | None = None
        self._lock = asyncio.Lock()

        settings = settings_provider.get_settings()
        self._active_provider = settings.preferred_provider
        self._active_model = settings.model_for(self._active_provider)

    # Observable state

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is not SessionState.CLOSED

    @property
    def loading(self) -> bool:
        return self._state is SessionState.LOADING

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def current_context(self) -> ConversationContext | None:
        return self._binder.context

    @property
    def active_provider(self) -> AIProvider:
        return self._active_provider

    @property
    def active_model(self) -> str:
        return self._active_model

    # Lifecycle

    async def open_chat(self, entity: Entity | None = None) -> None:
        """Open the session and load its history.

        The active provider and model are re-read from settings. Without an
        entity the previously bound context (if any) is kept, so a closed
        session can be resumed.

        Args:
            entity: Repository or package to bind to.

        Raises:
            SessionBusyError: A request is still in flight.
        """
        async with self._exclusive():
            settings = self._settings_provider.get_settings()
            self._active_provider = settings.preferred_provider
            self._active_model = settings.model_for(self._active_provider)
            self._state = SessionState.IDLE
            self._error = None

            if entity is not None:
                self._binder.set_context(entity)

            logger.info(
                "Chat opened: provider=%s, model=%s, context=%s",
                self._active_provider.value,
                self._active_model,
                self._binder.key,
            )
            await self._load_history()

    def close_chat(self) -> None:
        """Close the session. Bound context and stored history survive.

        A request still in flight runs to completion and its reply is
        recorded, but the session stays closed until ``open_chat``.
        """
        self._state = SessionState.CLOSED
        logger.info("Chat closed")

    def set_context(self, entity: Entity | None) -> ConversationContext | None:
        """Bind the session to ``entity``, or to the general chat if None."""
        return self._binder.set_context(entity)

    def clear_context(self) -> None:
        self._binder.clear_context()

    async def load_history(self) -> None:
        """Replace the in-memory messages with the stored history.

        Loads the bound conversation, or the general one when unbound. On
        failure the list is left empty and the session enters ERROR.

        Raises:
            SessionClosedError: The session is not open.
            SessionBusyError: A request is in flight.
        """
        self._ensure_open()
        async with self._exclusive():
            await self._load_history()

    async def clear_history(self) -> None:
        """Forget the current conversation, in memory and in storage.

        Only the active scope is deleted: the bound conversation, or the
        general one when unbound.

        Raises:
            SessionBusyError: A request is in flight.
        """
        async with self._exclusive():
            self._messages = []
            self._error = None
            if self._state is SessionState.ERROR:
                self._state = SessionState.IDLE

            key = self._binder.key
            try:
                if key is None:
                    await self._repository.delete_general()
                else:
                    await self._repository.delete_conversation(key)
            except PersistenceError as e:
                logger.error("Failed to clear history for %s: %s", key, e)

    def switch_provider(self, provider: AIProvider) -> None:
        """Use ``provider`` for subsequent requests.

        History is not resent; earlier messages keep their provider tag.
        """
        settings = self._settings_provider.get_settings()
        self._active_provider = provider
        self._active_model = settings.model_for(provider)
        logger.info(
            "Switched provider: %s (model=%s)", provider.value, self._active_model
        )

    # Requests

    async def send_message(self, content: str) -> ChatMessage | None:
        """Send a user message and wait for the reply.

        The user message is appended and persisted before the provider is
        called. It is not rolled back when the call fails.

        Args:
            content: Message text.

        Returns:
            The assistant message, or None on failure (see ``error``).

        Raises:
            SessionClosedError: The session is not open.
            SessionBusyError: Another request is in flight.
        """
        self._ensure_open()
        async with self._exclusive():
            text = content.strip()
            if not text:
                self._reject(ChatValidationError("Message cannot be empty"))
                return None

            provider, model = self._active_provider, self._active_model
            key = self._binder.key
            entity = self._binder.entity

            self._state = SessionState.LOADING
            self._error = None
            user_message = ChatMessage.create_user(text, provider, model, key=key)
            self._messages.append(user_message)
            await self._persist(user_message)

            history = build_conversation_history(self._messages[:-1])
            prompt = (
                contextual_question_prompt(text, entity) if entity is not None else text
            )
            turns = [
                ChatTurn(role=MessageRole.SYSTEM, content=system_prompt_for(entity)),
                *history,
                ChatTurn(role=MessageRole.USER, content=prompt),
            ]
            return await self._complete(
                turns, provider, model, key, fallback="Failed to get AI response"
            )

    async def explain_context(self) -> ChatMessage | None:
        """Ask the provider to explain the bound entity.

        Only the assistant reply is added to the conversation.

        Raises:
            SessionClosedError: The session is not open.
            SessionBusyError: Another request is in flight.
        """
        self._ensure_open()
        async with self._exclusive():
            entity = self._binder.entity
            if entity is None:
                self._reject(ChatValidationError("No context available to explain"))
                return None

            self._state = SessionState.LOADING
            self._error = None
            return await self._complete(
                self._task_turns(entity, explain_prompt(entity)),
                fallback="Failed to explain context",
            )

    async def compare_with(self, alternatives: Sequence[Entity]) -> ChatMessage | None:
        """Ask the provider to compare the bound entity with alternatives.

        Raises:
            SessionClosedError: The session is not open.
            SessionBusyError: Another request is in flight.
        """
        self._ensure_open()
        async with self._exclusive():
            entity = self._binder.entity
            if entity is None:
                self._reject(ChatValidationError("No context available to compare"))
                return None
            if not alternatives:
                self._reject(
                    ChatValidationError("No alternatives provided for comparison")
                )
                return None

            self._state = SessionState.LOADING
            self._error = None
            return await self._complete(
                self._task_turns(
                    entity, compare_alternatives_prompt(entity, alternatives)
                ),
                fallback="Failed to compare alternatives",
            )

    async def summarize_release(self, notes: str) -> ChatMessage | None:
        """Summarize release notes of the bound repository.

        Raises:
            SessionClosedError: The session is not open.
            SessionBusyError: Another request is in flight.
        """
        self._ensure_open()
        async with self._exclusive():
            entity = self._binder.entity
            if entity is None or entity.kind is not ContextType.REPO:
                self._reject(
                    ChatValidationError("Release summaries need a repository context")
                )
                return None
            if not notes.strip():
                self._reject(ChatValidationError("Release notes are empty"))
                return None

            self._state = SessionState.LOADING
            self._error = None
            return await self._complete(
                self._task_turns(entity, summarize_release_prompt(entity, notes)),
                fallback="Failed to summarize release",
            )

    async def test_connection(self, provider: AIProvider | None = None) -> bool:
        """Check whether ``provider`` (default: the active one) is usable."""
        client = self._client_for(provider or self._active_provider)
        return await client.test_connection()

    # Internals

    def _ensure_open(self) -> None:
        if not self.is_open:
            raise SessionClosedError("Chat session is not open")

    @asynccontextmanager
    async def _exclusive(self) -> AsyncIterator[None]:
        if self._lock.locked():
            raise SessionBusyError("A request is already in progress")
        async with self._lock:
            yield

    def _client_for(self, provider: AIProvider) -> ProviderClient:
        client = self._clients.get(provider)
        if client is None:
            client = self._client_factory(provider)
            self._clients[provider] = client
        return client

    def _task_turns(self, entity: Entity, prompt: str) -> list[ChatTurn]:
        return [
            ChatTurn(role=MessageRole.SYSTEM, content=system_prompt_for(entity)),
            ChatTurn(role=MessageRole.USER, content=prompt),
        ]

    async def _load_history(self) -> None:
        self._state = SessionState.LOADING
        self._error = None
        key = self._binder.key
        limit = self._settings_provider.get_settings().history_limit

        try:
            messages = await self._repository.get_messages(key, limit=limit)
        except PersistenceError as e:
            logger.error("Failed to load history for %s: %s", key, e)
            self._messages = []
            self._fail(HISTORY_LOAD_ERROR)
            return

        self._messages = list(messages)
        self._settle(SessionState.IDLE)
        logger.debug("Loaded %d messages for %s", len(messages), key)

    def _reject(self, error: ChatValidationError) -> None:
        logger.info("Request rejected: %s", error)
        self._fail(str(error))

    def _settle(self, state: SessionState) -> None:
        # Only open_chat leaves CLOSED.
        if self._state is not SessionState.CLOSED:
            self._state = state

    def _fail(self, message: str) -> None:
        self._error = message
        self._settle(SessionState.ERROR)

    async def _persist(self, message: ChatMessage) -> None:
        try:
            await self._repository.save_message(message)
        except PersistenceError as e:
            logger.error("Failed to persist message %s: %s", message.id, e)

    async def _call_provider(
        self, provider: AIProvider, model: str, turns: list[ChatTurn]
    ) -> ProviderResponse:
        settings = self._settings_provider.get_settings()
        config = settings.provider_config(provider)
        client = self._client_for(provider)
        try:
            return await asyncio.wait_for(
                client.send_message(
                    turns,
                    model=model,
                    max_tokens=config.max_tokens,
                    temperature=config.temperature,
                ),
                timeout=settings.request_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise ProviderUnreachableError(
                f"{provider.value} did not respond within "
                f"{settings.request_timeout_seconds:g}s"
            ) from e

    async def _complete(
        self,
        turns: list[ChatTurn],
        provider: AIProvider | None = None,
        model: str | None = None,
        key: ConversationKey | None = None,
        *,
        fallback: str,
    ) -> ChatMessage | None:
        """Call the provider and record its reply.

        Provider, model and key default to the session's current ones.
        """
        if provider is None or model is None:
            provider, model = self._active_provider, self._active_model
            key = self._binder.key

        try:
            response = await self._call_provider(provider, model, turns)
        except (ProviderError, ConfigurationError) as e:
            logger.warning("%s request failed: %s", provider.value, e)
            self._fail(describe_error(e, fallback))
            return None
        except Exception as e:
            logger.exception("Unexpected error from %s", provider.value)
            self._fail(describe_error(e, fallback))
            return None

        assistant_message = ChatMessage.create_assistant(
            response.content,
            provider,
            model,
            token_count=response.token_count,
            key=key,
        )
        self._messages.append(assistant_message)
        self._settle(SessionState.IDLE)
        await self._persist(assistant_message)
        return assistant_message
