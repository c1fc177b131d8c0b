"""Conversation history formatting."""

from collections.abc import Iterable

from repochat.domain.entities import ChatMessage, ChatTurn


def build_conversation_history(messages: Iterable[ChatMessage]) -> list[ChatTurn]:
    """Convert stored messages into provider turns.

    System messages are dropped; the system prompt is supplied separately
    for every request.

    Args:
        messages: Messages in chronological order.

    Returns:
        Turns in the same order.
    """
    return [
        ChatTurn(role=message.role, content=message.content)
        for message in messages
        if not message.is_system
    ]
