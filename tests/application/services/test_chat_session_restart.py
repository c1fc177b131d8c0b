"""History survives a restart when stored in a database file."""

from pathlib import Path

from repochat.application.services import ChatSessionController
from repochat.config import AssistantSettings
from repochat.domain.entities import (
    AIProvider,
    ChatTurn,
    MessageRole,
    ProviderResponse,
)
from repochat.infrastructure.persistence import (
    DatabaseManager,
    SQLiteChatMessageRepository,
)
from repochat.infrastructure.settings import StaticSettingsProvider


class EchoClient:
    """Replies with the last user turn."""

    def __init__(self, provider: AIProvider) -> None:
        self.provider = provider

    async def send_message(
        self,
        turns: list[ChatTurn],
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> ProviderResponse:
        return ProviderResponse(
            content=f"echo: {turns[-1].content}",
            model=model,
            provider=self.provider,
        )

    async def test_connection(self) -> bool:
        return True


async def _open_controller(
    db_path: Path,
) -> tuple[ChatSessionController, DatabaseManager]:
    manager = DatabaseManager(str(db_path))
    await manager.create_tables()
    controller = ChatSessionController(
        SQLiteChatMessageRepository(manager.get_session),
        StaticSettingsProvider(AssistantSettings()),
        EchoClient,
    )
    return controller, manager


class TestRestart:
    """Restart scenario tests."""

    async def test_general_history_reloaded(self, tmp_path: Path) -> None:
        db_path = tmp_path / "data" / "chat.db"

        controller, manager = await _open_controller(db_path)
        await controller.open_chat()
        await controller.send_message("Hello")
        controller.close_chat()
        await manager.close()

        controller, manager = await _open_controller(db_path)
        try:
            await controller.open_chat()

            messages = controller.messages
            assert [m.role for m in messages] == [
                MessageRole.USER,
                MessageRole.ASSISTANT,
            ]
            assert [m.content for m in messages] == ["Hello", "echo: Hello"]
            assert all(m.context_type is None for m in messages)
            assert all(m.context_id is None for m in messages)
            assert all(m.provider is AIProvider.GEMINI for m in messages)
        finally:
            await manager.close()
