"""
UTC datetime utilities for consistent timezone handling.

All datetime values in the system are timezone-aware UTC. Provider APIs and
SQLite hand back naive or offset values; normalize them with ensure_utc.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current UTC datetime with timezone info."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Use at repository/persistence boundaries to normalize datetimes.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def to_epoch_seconds(dt: datetime) -> int:
    """Whole Unix seconds (naive values are taken as UTC); Gmail search terms use this."""
    return int(ensure_utc(dt).timestamp())


def to_iso_z(dt: datetime) -> str:
    """ISO-8601 UTC with a Z suffix and no fraction, e.g. 2024-01-31T08:00:00Z (Graph filters)."""
    return ensure_utc(dt).strftime("%Y-%m-%dT%H:%M:%SZ")
