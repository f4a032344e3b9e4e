"""Shared utilities: datetime."""

from explorer.shared.utils.datetime import (
    ensure_utc,
    expires_after,
    remaining_lifetime,
    utc_now,
)

__all__ = [
    "utc_now",
    "ensure_utc",
    "expires_after",
    "remaining_lifetime",
]
