"""Timezone helpers.

Cassandra stores TIMESTAMP with millisecond precision and hands back naive
datetimes; everything inside the engine is UTC-aware.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current time as a UTC-aware datetime truncated to milliseconds."""
    now = datetime.now(UTC)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
