"""Catalog entities the assistant can be bound to.

Repositories and packages form an explicit tagged union: every entity
carries a ``kind`` discriminant fixed by its class, so callers never have
to guess the shape from which attributes happen to be present.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Literal

from repochat.domain.entities.context import ContextType

RECENT_ACTIVITY_WINDOW = timedelta(days=7)


def format_count(value: int) -> str:
    """Format a counter as 999 / 1.2K / 3.4M.

    Args:
        value: Raw count.

    Returns:
        Human readable string.
    """
    if value < 1000:
        return str(value)
    if value < 1_000_000:
        return f"{value / 1000:.1f}K"
    return f"{value / 1_000_000:.1f}M"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count > 1 else ''} ago"


def time_ago(then: datetime, now: datetime) -> str:
    """Describe how long ago ``then`` was, relative to ``now``.

    Args:
        then: Past timestamp.
        now: Reference time.

    Returns:
        e.g. "3 days ago", "Just now".
    """
    delta = now - then
    days = delta.days
    if days > 365:
        return _plural(days // 365, "year")
    if days > 30:
        return _plural(days // 30, "month")
    if days > 0:
        return _plural(days, "day")
    seconds = int(delta.total_seconds())
    if seconds >= 3600:
        return _plural(seconds // 3600, "hour")
    if seconds >= 60:
        return _plural(seconds // 60, "minute")
    return "Just now"


@dataclass(frozen=True)
class Repository:
    """Source code repository.

    Attributes:
        full_name: Canonical "owner/name" identifier.
        description: Short description.
        language: Primary language.
        stars: Star count.
        forks: Fork count.
        topics: Topic tags.
        license: License name.
        homepage: Project homepage URL.
        updated_at: Last metadata update.
        pushed_at: Last push.
        latest_release_tag: Tag of the latest release.
    """

    full_name: str
    description: str | None = None
    language: str | None = None
    stars: int = 0
    forks: int = 0
    topics: tuple[str, ...] = ()
    license: str | None = None
    homepage: str | None = None
    updated_at: datetime | None = None
    pushed_at: datetime | None = None
    latest_release_tag: str | None = None
    kind: Literal[ContextType.REPO] = field(default=ContextType.REPO, init=False)

    @property
    def name(self) -> str:
        return self.full_name.rsplit("/", 1)[-1]

    @property
    def canonical_id(self) -> str:
        return self.full_name

    def has_recent_activity(self, now: datetime) -> bool:
        """Check whether the repository was pushed within the last 7 days."""
        if self.pushed_at is None:
            return False
        return now - self.pushed_at <= RECENT_ACTIVITY_WINDOW


@dataclass(frozen=True)
class Package:
    """Published package.

    Attributes:
        name: Canonical package name.
        version: Latest version.
        description: Short description.
        downloads: Download count for the trending period.
        keywords: Keyword tags.
        license: License name.
        modified: Last publish time.
        dependencies: Runtime dependency names.
        dev_dependencies: Development dependency names.
        repository_url: Source repository URL.
    """

    name: str
    version: str | None = None
    description: str | None = None
    downloads: int = 0
    keywords: tuple[str, ...] = ()
    license: str | None = None
    modified: datetime | None = None
    dependencies: tuple[str, ...] = ()
    dev_dependencies: tuple[str, ...] = ()
    repository_url: str | None = None
    kind: Literal[ContextType.PACKAGE] = field(
        default=ContextType.PACKAGE, init=False
    )

    @property
    def canonical_id(self) -> str:
        return self.name

    @property
    def total_dependency_count(self) -> int:
        return len(self.dependencies) + len(self.dev_dependencies)

    def has_recent_activity(self, now: datetime) -> bool:
        """Check whether a version was published within the last 7 days."""
        if self.modified is None:
            return False
        return now - self.modified <= RECENT_ACTIVITY_WINDOW


Entity = Repository | Package
