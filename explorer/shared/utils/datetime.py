"""
UTC datetime utilities for consistent timezone handling.

Token expiry and cache TTLs are computed from timezone-aware UTC values.
Use these helpers instead of datetime.now() or datetime.utcnow().
"""

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    """Return the current UTC datetime with timezone info."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Args:
        dt: A datetime that may be naive or aware

    Returns:
        UTC-aware datetime or None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def expires_after(seconds: float) -> datetime:
    """Return the UTC instant `seconds` from now (e.g. from an OAuth expires_in)."""
    return utc_now() + timedelta(seconds=seconds)


def remaining_lifetime(expires_at: datetime) -> timedelta:
    """Return the time left until expires_at; zero or negative once it has passed."""
    return ensure_utc(expires_at) - utc_now()
