"""アプリケーションのエントリポイント"""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from repochat.application.services import (
    ChatSessionController,
    RetentionSweeper,
)
from repochat.config import Config, ConfigError, LoggingConfig, load_config
from repochat.domain.entities import (
    AIProvider,
    ContextType,
    Entity,
    Package,
    Repository,
)
from repochat.infrastructure.llm import ProviderClientFactory, example_prompts_for
from repochat.infrastructure.persistence import (
    DatabaseManager,
    SQLiteChatMessageRepository,
)
from repochat.infrastructure.secrets import EnvironmentSecretStore
from repochat.infrastructure.settings import StaticSettingsProvider

# Default logging for early startup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

CHAT_HELP = """\
Commands:
  /help               Show this help
  /clear              Delete this conversation's history
  /provider <name>    Switch provider (gemini, ollama, openrouter)
  /explain            Explain the bound repository or package
  /compare <id> ...   Compare with alternatives of the same kind
  /quit               Leave the chat"""


def configure_logging(config: LoggingConfig | None) -> None:
    """Configure logging based on config.

    Args:
        config: Logging configuration. If None, uses defaults.
    """
    if config is None:
        return

    root_logger = logging.getLogger()
    level = getattr(logging, config.level.upper(), logging.INFO)
    root_logger.setLevel(level)

    if root_logger.handlers:
        formatter = logging.Formatter(config.format)
        for handler in root_logger.handlers:
            handler.setFormatter(formatter)

    if config.loggers:
        for logger_name, logger_level in config.loggers.items():
            individual_logger = logging.getLogger(logger_name)
            individual_level = getattr(logging, logger_level.upper(), logging.INFO)
            individual_logger.setLevel(individual_level)
            logger.debug(
                "Set logger '%s' to level %s", logger_name, logger_level.upper()
            )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repochat",
        description="Chat with an AI assistant about repositories and packages.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="path to config.yaml (default: ./config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    chat = subparsers.add_parser("chat", help="start an interactive chat")
    target = chat.add_mutually_exclusive_group()
    target.add_argument("--repo", metavar="FULL_NAME", help="bind to owner/name")
    target.add_argument("--package", metavar="NAME", help="bind to a package")
    chat.add_argument(
        "--provider",
        choices=[provider.value for provider in AIProvider],
        help="provider to use instead of the configured one",
    )

    subparsers.add_parser("conversations", help="list stored conversations")

    clean = subparsers.add_parser("clean", help="delete old messages")
    clean.add_argument(
        "--days",
        type=int,
        help="delete messages older than this (default: retention.days)",
    )

    test = subparsers.add_parser("test-connection", help="check a provider")
    test.add_argument(
        "provider",
        nargs="?",
        choices=[provider.value for provider in AIProvider],
        help="provider to check (default: all)",
    )

    subparsers.add_parser("models", help="list models installed on Ollama")
    return parser


def entity_from_args(args: argparse.Namespace) -> Entity | None:
    if args.repo:
        return Repository(full_name=args.repo)
    if args.package:
        return Package(name=args.package)
    return None


def _alternatives(kind: ContextType, ids: Sequence[str]) -> list[Entity]:
    if kind is ContextType.REPO:
        return [Repository(full_name=identifier) for identifier in ids]
    return [Package(name=identifier) for identifier in ids]


async def run_chat(
    controller: ChatSessionController,
    entity: Entity | None,
    provider: AIProvider | None,
) -> None:
    """Interactive read-eval loop on stdin."""
    await controller.open_chat(entity)
    if provider is not None:
        controller.switch_provider(provider)

    print(
        f"Chatting with {controller.active_provider.value} "
        f"({controller.active_model}). Type /help for commands."
    )
    for message in controller.messages:
        print(f"[{message.role.value}] {message.content}")
    if controller.error:
        print(f"! {controller.error}")
    if not controller.messages:
        for suggestion in example_prompts_for(entity):
            print(f"  - {suggestion}")

    while controller.is_open:
        try:
            line = await asyncio.to_thread(input, "> ")
        except EOFError:
            break
        line = line.strip()
        if not line:
            continue

        command, _, rest = line.partition(" ")
        reply = None
        if command == "/quit":
            break
        elif command == "/help":
            print(CHAT_HELP)
            continue
        elif command == "/clear":
            await controller.clear_history()
            print("History cleared.")
            continue
        elif command == "/provider":
            try:
                controller.switch_provider(AIProvider(rest.strip()))
            except ValueError:
                print(f"! Unknown provider: {rest.strip()}")
                continue
            print(
                f"Using {controller.active_provider.value} "
                f"({controller.active_model})"
            )
            continue
        elif command == "/explain":
            reply = await controller.explain_context()
        elif command == "/compare":
            context = controller.current_context
            kind = context.context_type if context else ContextType.REPO
            reply = await controller.compare_with(_alternatives(kind, rest.split()))
        else:
            reply = await controller.send_message(line)

        if reply is not None:
            print(reply.content)
        elif controller.error:
            print(f"! {controller.error}")

    controller.close_chat()


async def main(argv: Sequence[str] | None = None) -> int:
    """アプリケーションを起動する"""
    args = build_parser().parse_args(argv)

    if not args.config.exists():
        logger.error("%s not found", args.config)
        return 1

    try:
        config: Config = load_config(args.config)
    except ConfigError as e:
        logger.error("Failed to load config: %s", e)
        return 1

    configure_logging(config.logging)

    db_manager = DatabaseManager(config.database.path)
    await db_manager.create_tables()
    repository = SQLiteChatMessageRepository(db_manager.get_session)
    secret_store = EnvironmentSecretStore(config.secrets.env_names)
    factory = ProviderClientFactory(secret_store, config.providers)

    try:
        if args.command == "chat":
            controller = ChatSessionController(
                repository,
                StaticSettingsProvider(config.assistant),
                factory.create,
            )
            provider = AIProvider(args.provider) if args.provider else None
            sweeper = RetentionSweeper(repository, config.retention)
            sweeper_task = None
            if config.retention.enabled:
                sweeper_task = asyncio.create_task(sweeper.start())
            try:
                await run_chat(controller, entity_from_args(args), provider)
            finally:
                if sweeper_task is not None:
                    await sweeper.stop()
                    await sweeper_task

        elif args.command == "conversations":
            for conversation in await repository.get_active_contexts():
                print(
                    f"{conversation.context_type.value:8} "
                    f"{conversation.context_id:40} "
                    f"{conversation.message_count:5} "
                    f"{conversation.last_message_at:%Y-%m-%d %H:%M}"
                )
            general = await repository.count_messages(None)
            if general:
                print(f"{'general':8} {'':40} {general:5}")

        elif args.command == "clean":
            days = args.days if args.days is not None else config.retention.days
            if days <= 0:
                logger.error("--days must be positive")
                return 1
            deleted = await repository.clean_older_than(days)
            print(f"Deleted {deleted} messages older than {days} days.")

        elif args.command == "test-connection":
            providers = (
                [AIProvider(args.provider)] if args.provider else list(AIProvider)
            )
            ok = True
            for provider in providers:
                connected = await factory.create(provider).test_connection()
                ok = ok and connected
                print(f"{provider.value:12} {'OK' if connected else 'FAILED'}")
            return 0 if ok else 1

        elif args.command == "models":
            for name in await factory.create_ollama().list_models():
                print(name)
    finally:
        await db_manager.close()

    return 0


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    run()
