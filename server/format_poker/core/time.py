"""UTC datetime helpers.

Timestamps are stored as **naive** UTC datetimes so the same ``DateTime``
columns work on SQLite and PostgreSQL without ``timezone=True``.
"""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime."""
    return datetime.now(UTC).replace(tzinfo=None)
