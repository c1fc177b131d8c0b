"""AI provider clients and prompt construction."""

from repochat.infrastructure.llm.factory import ProviderClientFactory
from repochat.infrastructure.llm.gemini import GeminiClient, merge_consecutive_turns
from repochat.infrastructure.llm.ollama import OllamaClient
from repochat.infrastructure.llm.openrouter import OpenRouterClient
from repochat.infrastructure.llm.prompts import (
    BASE_SYSTEM_PROMPT,
    EXAMPLE_PROMPTS,
    compare_alternatives_prompt,
    contextual_question_prompt,
    create_jinja_env,
    example_prompts_for,
    explain_prompt,
    format_entity_context,
    format_package_context,
    format_repository_context,
    summarize_release_prompt,
    system_prompt_for,
)
from repochat.infrastructure.llm.transport import RetryTransport, backoff_delay

__all__ = [
    "BASE_SYSTEM_PROMPT",
    "EXAMPLE_PROMPTS",
    "GeminiClient",
    "OllamaClient",
    "OpenRouterClient",
    "ProviderClientFactory",
    "RetryTransport",
    "backoff_delay",
    "compare_alternatives_prompt",
    "contextual_question_prompt",
    "create_jinja_env",
    "example_prompts_for",
    "explain_prompt",
    "format_entity_context",
    "format_package_context",
    "format_repository_context",
    "merge_consecutive_turns",
    "summarize_release_prompt",
    "system_prompt_for",
]
