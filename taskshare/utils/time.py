"""Time utilities."""
from datetime import UTC, date, datetime


def utcnow() -> datetime:
    """Return current UTC time with timezone awareness."""

    return datetime.now(tz=UTC)


def today() -> date:
    """Return the current UTC calendar date."""

    return utcnow().date()


__all__ = ["utcnow", "today"]
