"""Prompt construction for assistant conversations.

Everything here is pure: the same entity, inputs and ``now`` always
render the same text. Context blocks list fields in a fixed order and
substitute explicit fallback literals for missing values so the model
never sees an empty placeholder.
"""

from collections.abc import Sequence
from datetime import datetime, timezone
from functools import lru_cache

from jinja2 import Environment, PackageLoader, select_autoescape

from repochat.domain.entities import (
    ContextType,
    Entity,
    Package,
    Repository,
    format_count,
    time_ago,
)

NO_DESCRIPTION = "No description"
UNKNOWN = "Unknown"
NONE = "None"
NO_LICENSE = "No license"

BASE_SYSTEM_PROMPT = """\
You are an AI assistant helping developers explore and understand GitHub repositories and npm packages.

Your role is to:
- Provide clear, concise explanations about repositories and packages
- Help developers understand what a project does and how to use it
- Compare similar packages and suggest alternatives
- Answer technical questions about dependencies, features, and use cases
- Be helpful, accurate, and developer-friendly

Keep responses:
- Concise (2-3 paragraphs max unless asked for details)
- Technical but accessible
- Focused on practical information
- Honest about limitations (say "I don't know" if unsure)

Format responses in plain text (no markdown unless specifically asked)."""

REPOSITORY_SYSTEM_PROMPT = f"""\
{BASE_SYSTEM_PROMPT}

You are currently helping explore a GitHub repository. Focus on:
- Code quality and architecture
- Dependencies and security
- Community activity and maintainability
- Practical usage examples"""

PACKAGE_SYSTEM_PROMPT = f"""\
{BASE_SYSTEM_PROMPT}

You are currently helping explore an npm package. Focus on:
- Installation and usage
- API and features
- Dependencies and bundle size
- Alternatives and ecosystem fit"""

EXAMPLE_PROMPTS: dict[str, tuple[str, ...]] = {
    "repo": (
        "What does this repository do?",
        "Is this actively maintained?",
        "What are the main features?",
        "Are there any security concerns?",
        "How do I get started using this?",
    ),
    "package": (
        "What is this package used for?",
        "How do I install and use it?",
        "What are popular alternatives?",
        "Is this package well-maintained?",
        "What are the dependencies?",
    ),
    "general": (
        "Compare this with similar options",
        "What are the pros and cons?",
        "Show me related packages/repos",
        "Explain the latest release",
    ),
}


def create_jinja_env() -> Environment:
    """Create Jinja2 environment for prompt templates.

    Returns:
        Environment loading from the
        ``repochat.infrastructure.llm`` templates directory.
    """
    return Environment(
        loader=PackageLoader("repochat.infrastructure.llm", "templates"),
        autoescape=select_autoescape(),
        trim_blocks=True,
        lstrip_blocks=True,
    )


@lru_cache(maxsize=1)
def _env() -> Environment:
    return create_jinja_env()


def _render(template_name: str, **values: object) -> str:
    return _env().get_template(template_name).render(**values)


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def _or(value: str | None, fallback: str) -> str:
    return value if value else fallback


def _last_updated(timestamp: datetime | None, now: datetime) -> str:
    if timestamp is None:
        return UNKNOWN
    return time_ago(timestamp, now)


def system_prompt_for(entity: Entity | None) -> str:
    """Pick the system prompt for the bound entity (or none)."""
    if entity is None:
        return BASE_SYSTEM_PROMPT
    if entity.kind is ContextType.REPO:
        return REPOSITORY_SYSTEM_PROMPT
    return PACKAGE_SYSTEM_PROMPT


def example_prompts_for(entity: Entity | None) -> tuple[str, ...]:
    """Suggested questions for the bound entity, general ones last."""
    general = EXAMPLE_PROMPTS["general"]
    if entity is None:
        return general
    return EXAMPLE_PROMPTS[entity.kind.value] + general


def format_repository_context(
    repository: Repository, now: datetime | None = None
) -> str:
    """Render the repository context block.

    Args:
        repository: Repository to describe.
        now: Reference time for "Last Updated" and activity status.

    Returns:
        Multi-line context block.
    """
    now = _now(now)
    return _render(
        "repository_context.j2",
        name=repository.full_name,
        description=_or(repository.description, NO_DESCRIPTION),
        language=_or(repository.language, UNKNOWN),
        stars=format_count(repository.stars),
        forks=format_count(repository.forks),
        topics=_or(", ".join(repository.topics), NONE),
        license=_or(repository.license, NO_LICENSE),
        last_updated=_last_updated(repository.updated_at, now),
        homepage=_or(repository.homepage, NONE),
        status=(
            "Active development"
            if repository.has_recent_activity(now)
            else "Low activity"
        ),
    )


def format_package_context(package: Package, now: datetime | None = None) -> str:
    """Render the package context block.

    Args:
        package: Package to describe.
        now: Reference time for "Last Updated" and activity status.

    Returns:
        Multi-line context block.
    """
    now = _now(now)
    return _render(
        "package_context.j2",
        name=package.name,
        description=_or(package.description, NO_DESCRIPTION),
        version=_or(package.version, UNKNOWN),
        downloads=format_count(package.downloads),
        keywords=_or(", ".join(package.keywords), NONE),
        license=_or(package.license, NO_LICENSE),
        last_updated=_last_updated(package.modified, now),
        dependency_count=package.total_dependency_count,
        repository=_or(package.repository_url, NONE),
        status="Recently updated" if package.has_recent_activity(now) else "Outdated",
    )


def format_entity_context(entity: Entity, now: datetime | None = None) -> str:
    if entity.kind is ContextType.REPO:
        return format_repository_context(entity, now)
    return format_package_context(entity, now)


def explain_prompt(entity: Entity, now: datetime | None = None) -> str:
    """Ask the model to explain the entity."""
    return _render(
        "explain.j2",
        context=format_entity_context(entity, now),
        kind=entity.kind.value,
    )


def compare_alternatives_prompt(
    main: Entity,
    alternatives: Sequence[Entity],
    now: datetime | None = None,
) -> str:
    """Ask the model to compare ``main`` with its alternatives.

    Alternatives are numbered from 1 in the order given.

    Raises:
        ValueError: ``alternatives`` is empty.
    """
    if not alternatives:
        raise ValueError("At least one alternative is required")
    now = _now(now)
    is_repository = main.kind is ContextType.REPO
    return _render(
        "compare.j2",
        label="Repository" if is_repository else "Package",
        plural="repositories" if is_repository else "packages",
        main_context=format_entity_context(main, now),
        alternatives=[format_entity_context(item, now) for item in alternatives],
    )


def contextual_question_prompt(
    question: str, entity: Entity, now: datetime | None = None
) -> str:
    """Wrap a user question with the entity's context block."""
    return _render(
        "contextual_question.j2",
        context=format_entity_context(entity, now),
        question=question,
        noun="repository" if entity.kind is ContextType.REPO else "package",
    )


def summarize_release_prompt(repository: Repository, notes: str) -> str:
    """Ask the model to summarize release notes of a repository."""
    return _render(
        "release_summary.j2",
        full_name=repository.full_name,
        notes=notes,
    )
