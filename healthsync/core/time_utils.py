"""
Timezone-safe datetime utilities.

All timestamps are stored in UTC. Compatible with both SQLite and PostgreSQL.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Return current UTC datetime with timezone info attached.

    Example:
        >>> now = utc_now()
        >>> now.tzinfo
        datetime.timezone.utc
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Convert any datetime to UTC.

    If the datetime is naive (no timezone info), it's assumed to be UTC.
    SQLite hands back naive values even for columns written with tzinfo.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def expires_at_from_now(expires_in: Optional[int], now: Optional[datetime] = None) -> Optional[datetime]:
    """Turn a provider ``expires_in`` (seconds) into an absolute UTC expiry."""
    if expires_in is None:
        return None
    return (now or utc_now()) + timedelta(seconds=int(expires_in))


def expires_within(expires_at: Optional[datetime], window: timedelta, now: Optional[datetime] = None) -> bool:
    """
    True when ``expires_at`` falls inside ``window`` from now.

    A missing expiry counts as expired.
    """
    if expires_at is None:
        return True
    return ensure_utc(expires_at) - (now or utc_now()) < window


def to_rfc3339(dt: datetime) -> str:
    """Serialize as a UTC RFC 3339 timestamp with a ``Z`` suffix."""
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")
