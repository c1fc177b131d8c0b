"""Datetime helpers for the message store."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_to_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime.

    SQLite drops the offset on write, so values read back are naive and
    are taken to be UTC. Aware values are converted.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
