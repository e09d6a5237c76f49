"""Database error helpers."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

UNIQUE_VIOLATION_SQLSTATE = "23505"
MYSQL_DUPLICATE_ENTRY_ERRNO = 1062


def is_unique_violation(error: IntegrityError) -> bool:
    """Return True when the IntegrityError indicates a unique-constraint conflict."""
    original = getattr(error, "orig", None)
    sqlstate = getattr(original, "sqlstate", None) or getattr(original, "pgcode", None)
    if sqlstate == UNIQUE_VIOLATION_SQLSTATE:
        return True
    args = getattr(original, "args", ())
    if args and args[0] == MYSQL_DUPLICATE_ENTRY_ERRNO:
        return True
    message = str(original or error).lower()
    return (
        "duplicate key" in message
        or "duplicate entry" in message
        or "unique constraint" in message
    )


__all__ = ["is_unique_violation"]
