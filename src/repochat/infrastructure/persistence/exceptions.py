"""Persistence-related exceptions."""

from repochat.domain.exceptions import PersistenceError


class DatabaseError(PersistenceError):
    """Database operation error."""


__all__ = ["DatabaseError", "PersistenceError"]
