"""UTC datetime helpers.

Every timestamp the ledger writes (created_at, settled_at, cancelled_at) is
timezone-aware UTC; responses carry them as ISO-8601 strings.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime | None) -> str | None:
    """ISO-8601 string, or None for an unset timestamp."""
    return dt.isoformat() if dt else None
