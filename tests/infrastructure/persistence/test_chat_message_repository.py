"""Tests for SQLiteChatMessageRepository."""

import random
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from repochat.domain.entities import (
    AIProvider,
    ChatMessage,
    ContextType,
    ConversationKey,
    MessageRole,
)
from repochat.domain.repositories import ANY_CONTEXT
from repochat.infrastructure.persistence import (
    ChatMessageModel,
    DatabaseError,
    PersistenceError,
    SQLiteChatMessageRepository,
)

BASE_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
REACT = ConversationKey(ContextType.REPO, "facebook/react")
LODASH = ConversationKey(ContextType.PACKAGE, "lodash")


def create_test_message(
    content: str = "Hello",
    key: ConversationKey | None = None,
    role: MessageRole = MessageRole.USER,
    created_at: datetime | None = None,
    provider: AIProvider = AIProvider.GEMINI,
    token_count: int | None = None,
) -> ChatMessage:
    """Create a test ChatMessage entity."""
    return ChatMessage(
        role=role,
        content=content,
        provider=provider,
        model="gemini-flash",
        context_type=key.context_type if key else None,
        context_id=key.context_id if key else None,
        token_count=token_count,
        created_at=created_at or BASE_TIME,
    )


class TestSaveMessage:
    """save_message tests."""

    async def test_round_trip(self, repository: SQLiteChatMessageRepository) -> None:
        """Test that every field survives storage."""
        message = create_test_message(
            "It is a UI library.",
            key=REACT,
            role=MessageRole.ASSISTANT,
            provider=AIProvider.OLLAMA,
            token_count=12,
        )

        await repository.save_message(message)

        [found] = await repository.get_messages(REACT)
        assert found == message
        assert found.created_at.tzinfo is not None

    async def test_idempotent(self, repository: SQLiteChatMessageRepository) -> None:
        """Test that saving the same message twice stores it once."""
        message = create_test_message()

        await repository.save_message(message)
        await repository.save_message(message)

        assert await repository.count_messages() == 1

    async def test_save_messages(self, repository: SQLiteChatMessageRepository) -> None:
        await repository.save_messages(
            [create_test_message("a"), create_test_message("b")]
        )

        assert await repository.count_messages() == 2


class TestGetMessages:
    """get_messages tests."""

    async def test_chronological_regardless_of_insert_order(
        self, repository: SQLiteChatMessageRepository
    ) -> None:
        """Test ascending created_at for shuffled inserts."""
        messages = [
            create_test_message(f"m{i}", created_at=BASE_TIME + timedelta(minutes=i))
            for i in range(10)
        ]
        shuffled = list(messages)
        random.Random(7).shuffle(shuffled)

        for message in shuffled:
            await repository.save_message(message)

        found = await repository.get_messages(None)
        assert [m.content for m in found] == [f"m{i}" for i in range(10)]

    async def test_limit_keeps_newest(
        self, repository: SQLiteChatMessageRepository
    ) -> None:
        for i in range(5):
            created_at = BASE_TIME + timedelta(seconds=i)
            await repository.save_message(
                create_test_message(f"m{i}", created_at=created_at)
            )

        found = await repository.get_messages(ANY_CONTEXT, limit=2)

        assert [m.content for m in found] == ["m3", "m4"]

    async def test_equal_timestamps_keep_insert_order(
        self, repository: SQLiteChatMessageRepository
    ) -> None:
        for content in ["first", "second", "third"]:
            await repository.save_message(create_test_message(content))

        found = await repository.get_messages(None)

        assert [m.content for m in found] == ["first", "second", "third"]

    async def test_scopes(self, repository: SQLiteChatMessageRepository) -> None:
        """Test scoped, general and all-recent retrieval."""
        await repository.save_message(create_test_message("general"))
        await repository.save_message(create_test_message("react", key=REACT))
        await repository.save_message(create_test_message("lodash", key=LODASH))

        assert [m.content for m in await repository.get_messages(REACT)] == ["react"]
        assert [m.content for m in await repository.get_messages(None)] == ["general"]
        assert len(await repository.get_messages(ANY_CONTEXT)) == 3
        assert len(await repository.get_messages()) == 3

    async def test_unknown_context_is_empty(
        self, repository: SQLiteChatMessageRepository
    ) -> None:
        key = ConversationKey(ContextType.REPO, "nobody/nothing")

        assert await repository.get_messages(key) == []


class TestDelete:
    """Delete operation tests."""

    async def test_delete_conversation_leaves_others(
        self, repository: SQLiteChatMessageRepository
    ) -> None:
        for i in range(3):
            await repository.save_message(create_test_message(f"r{i}", key=REACT))
            await repository.save_message(create_test_message(f"l{i}", key=LODASH))
        await repository.save_message(create_test_message("general"))

        await repository.delete_conversation(REACT)

        assert await repository.count_messages(REACT) == 0
        assert await repository.count_messages(LODASH) == 3
        assert await repository.count_messages(None) == 1

    async def test_delete_general_leaves_bound(
        self, repository: SQLiteChatMessageRepository
    ) -> None:
        await repository.save_message(create_test_message("general"))
        await repository.save_message(create_test_message("react", key=REACT))

        await repository.delete_general()

        assert await repository.count_messages(None) == 0
        assert await repository.count_messages(REACT) == 1

    async def test_deletes_are_idempotent(
        self, repository: SQLiteChatMessageRepository
    ) -> None:
        message = create_test_message(key=REACT)
        await repository.save_message(message)

        await repository.delete_message(message.id)
        await repository.delete_message(message.id)
        await repository.delete_conversation(REACT)
        await repository.delete_general()
        await repository.delete_all()
        await repository.delete_all()

        assert await repository.count_messages() == 0

    async def test_delete_all(self, repository: SQLiteChatMessageRepository) -> None:
        await repository.save_message(create_test_message("general"))
        await repository.save_message(create_test_message("react", key=REACT))

        await repository.delete_all()

        assert await repository.count_messages() == 0


class TestCleanOlderThan:
    """clean_older_than tests."""

    async def test_removes_only_old_messages(
        self, repository: SQLiteChatMessageRepository
    ) -> None:
        now = BASE_TIME + timedelta(days=60)
        await repository.save_message(create_test_message("old", created_at=BASE_TIME))
        await repository.save_message(
            create_test_message("recent", created_at=now - timedelta(days=1))
        )

        deleted = await repository.clean_older_than(30, now=now)

        assert deleted == 1
        assert [m.content for m in await repository.get_messages()] == ["recent"]

    async def test_nothing_to_clean(
        self, repository: SQLiteChatMessageRepository
    ) -> None:
        assert await repository.clean_older_than(30, now=BASE_TIME) == 0


class TestGetActiveContexts:
    """get_active_contexts tests."""

    async def test_lists_bound_conversations_newest_first(
        self, repository: SQLiteChatMessageRepository
    ) -> None:
        await repository.save_message(create_test_message("general"))
        await repository.save_message(create_test_message("r1", key=REACT))
        await repository.save_message(
            create_test_message(
                "r2", key=REACT, created_at=BASE_TIME + timedelta(hours=1)
            )
        )
        await repository.save_message(
            create_test_message(
                "l1", key=LODASH, created_at=BASE_TIME + timedelta(hours=2)
            )
        )

        contexts = await repository.get_active_contexts()

        assert [c.key for c in contexts] == [LODASH, REACT]
        assert contexts[0].message_count == 1
        assert contexts[1].message_count == 2
        assert contexts[1].last_message_at == BASE_TIME + timedelta(hours=1)

    async def test_empty(self, repository: SQLiteChatMessageRepository) -> None:
        assert await repository.get_active_contexts() == []


class TestErrorWrapping:
    """SQLAlchemy errors surface as DatabaseError."""

    async def test_operational_error(self) -> None:
        @asynccontextmanager
        async def broken_session():
            raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))
            yield  # pragma: no cover

        repository = SQLiteChatMessageRepository(broken_session)

        with pytest.raises(DatabaseError) as exc_info:
            await repository.get_messages()
        assert isinstance(exc_info.value, PersistenceError)


class TestStoredRowIntegrity:
    """Rows that violate the context pair never reach the caller."""

    async def test_half_bound_row_rejected_by_table(self, session_factory) -> None:
        async with session_factory() as session:
            session.add(
                ChatMessageModel(
                    message_id="half",
                    role="user",
                    content="x",
                    context_type="repo",
                    context_id=None,
                    provider="gemini",
                    model="m",
                )
            )
            with pytest.raises(IntegrityError):
                await session.commit()

    async def test_empty_context_id_rejected_by_table(self, session_factory) -> None:
        async with session_factory() as session:
            session.add(
                ChatMessageModel(
                    message_id="empty",
                    role="user",
                    content="x",
                    context_type="package",
                    context_id="",
                    provider="gemini",
                    model="m",
                )
            )
            with pytest.raises(IntegrityError):
                await session.commit()

    async def test_unreadable_row_surfaces_as_database_error(
        self, repository: SQLiteChatMessageRepository, session_factory
    ) -> None:
        async with session_factory() as session:
            session.add(
                ChatMessageModel(
                    message_id="odd",
                    role="moderator",
                    content="x",
                    provider="gemini",
                    model="m",
                )
            )
            await session.commit()

        with pytest.raises(DatabaseError, match="odd"):
            await repository.get_messages(None)
