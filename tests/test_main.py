"""Tests for the command line entry point."""

import logging
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

from repochat.__main__ import (
    CHAT_HELP,
    build_parser,
    configure_logging,
    entity_from_args,
    main,
    run_chat,
)
from repochat.application.services import ChatSessionController
from repochat.config import LoggingConfig
from repochat.domain.entities import (
    AIProvider,
    ChatMessage,
    ContextType,
    ConversationKey,
    Package,
    Repository,
)
from repochat.infrastructure.persistence import (
    DatabaseManager,
    SQLiteChatMessageRepository,
)
from repochat.infrastructure.settings import StaticSettingsProvider


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        f"database:\n  path: {tmp_path / 'chat.db'}\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    formatters = [handler.formatter for handler in root.handlers]
    yield root
    root.setLevel(level)
    for handler, formatter in zip(root.handlers, formatters):
        handler.setFormatter(formatter)


class TestBuildParser:
    """build_parser のテスト"""

    def test_chat_with_repo(self) -> None:
        """--repo と --provider を解釈できる"""
        args = build_parser().parse_args(
            ["chat", "--repo", "facebook/react", "--provider", "ollama"]
        )

        assert args.command == "chat"
        assert args.repo == "facebook/react"
        assert args.package is None
        assert args.provider == "ollama"

    def test_repo_and_package_are_exclusive(self) -> None:
        """--repo と --package は同時に指定できない"""
        with pytest.raises(SystemExit):
            build_parser().parse_args(
                ["chat", "--repo", "a/b", "--package", "lodash"]
            )

    def test_unknown_provider_rejected(self) -> None:
        """未知のプロバイダはエラー"""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["test-connection", "claude"])

    def test_default_config_path(self) -> None:
        """-c 省略時は ./config.yaml"""
        args = build_parser().parse_args(["conversations"])

        assert args.config == Path("config.yaml")

    def test_command_required(self) -> None:
        """サブコマンドは必須"""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestEntityFromArgs:
    """entity_from_args のテスト"""

    def test_repository(self) -> None:
        args = build_parser().parse_args(["chat", "--repo", "facebook/react"])

        assert entity_from_args(args) == Repository(full_name="facebook/react")

    def test_package(self) -> None:
        args = build_parser().parse_args(["chat", "--package", "lodash"])

        assert entity_from_args(args) == Package(name="lodash")

    def test_general(self) -> None:
        args = build_parser().parse_args(["chat"])

        assert entity_from_args(args) is None


class TestConfigureLogging:
    """configure_logging のテスト"""

    def test_none_is_noop(self, restore_root_logger: logging.Logger) -> None:
        """None の場合は何もしない"""
        before = restore_root_logger.level

        configure_logging(None)

        assert restore_root_logger.level == before

    def test_sets_levels(self, restore_root_logger: logging.Logger) -> None:
        """ルートと個別ロガーのレベルを設定する"""
        configure_logging(
            LoggingConfig(
                level="warning",
                loggers={"repochat.test_main": "debug"},
            )
        )

        assert restore_root_logger.level == logging.WARNING
        assert logging.getLogger("repochat.test_main").level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(
        self, restore_root_logger: logging.Logger
    ) -> None:
        """不明なレベル名は INFO"""
        configure_logging(LoggingConfig(level="chatty"))

        assert restore_root_logger.level == logging.INFO


class TestMain:
    """main のテスト"""

    async def test_missing_config(self, tmp_path: Path) -> None:
        """設定ファイルがなければ 1 を返す"""
        assert await main(["-c", str(tmp_path / "nope.yaml"), "conversations"]) == 1

    async def test_invalid_config(self, tmp_path: Path) -> None:
        """必須項目が欠落していれば 1 を返す"""
        path = tmp_path / "config.yaml"
        path.write_text("assistant: {}\n", encoding="utf-8")

        assert await main(["-c", str(path), "conversations"]) == 1

    async def test_conversations(
        self,
        config_path: Path,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """会話一覧を表示する"""
        manager = DatabaseManager(str(tmp_path / "chat.db"))
        await manager.create_tables()
        repository = SQLiteChatMessageRepository(manager.get_session)
        await repository.save_message(
            ChatMessage.create_user(
                "hi",
                AIProvider.GEMINI,
                "gemini-flash",
                key=ConversationKey(ContextType.PACKAGE, "lodash"),
            )
        )
        await repository.save_message(
            ChatMessage.create_user("hello", AIProvider.GEMINI, "gemini-flash")
        )
        await manager.close()

        assert await main(["-c", str(config_path), "conversations"]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines[0].split()[:3] == ["package", "lodash", "1"]
        assert lines[1].split() == ["general", "1"]

    async def test_clean_rejects_non_positive_days(self, config_path: Path) -> None:
        """--days は正の数のみ"""
        assert await main(["-c", str(config_path), "clean", "--days", "0"]) == 1

    async def test_clean(
        self, config_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """古いメッセージを削除して件数を表示する"""
        assert await main(["-c", str(config_path), "clean", "--days", "7"]) == 0

        assert "Deleted 0 messages older than 7 days." in capsys.readouterr().out

    async def test_connection_without_credentials(
        self,
        config_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """認証情報がなければ FAILED を表示して 1 を返す"""
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        result = await main(["-c", str(config_path), "test-connection", "gemini"])

        assert result == 1
        assert capsys.readouterr().out.split() == ["gemini", "FAILED"]


class TestRunChat:
    """run_chat のテスト"""

    @pytest.mark.parametrize(
        "command",
        ["/help", "/clear", "/provider", "/explain", "/compare", "/quit"],
    )
    def test_help_lists_every_command(self, command: str) -> None:
        """対話ループが受け付けるコマンドはすべてヘルプに載っている"""
        assert command in CHAT_HELP

    async def test_help_command(
        self,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """/help でヘルプを表示し、/quit で終了する"""
        repository = Mock()
        repository.get_messages = AsyncMock(return_value=[])
        controller = ChatSessionController(
            repository, StaticSettingsProvider(), Mock()
        )
        lines = iter(["/help", "/quit"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))

        await run_chat(controller, None, None)

        out = capsys.readouterr().out
        assert "Type /help for commands." in out
        assert CHAT_HELP in out
        assert controller.is_open is False
