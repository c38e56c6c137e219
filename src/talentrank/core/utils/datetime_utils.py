"""
Centralized datetime utilities for TalentRank.

All datetimes are handled in UTC. Every time-dependent primitive
(cache, rate limiter, provider health) reads the clock through
``epoch_seconds`` by default so tests can freeze it with ``set_mock_time``
or inject their own clock callable.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure a datetime is in UTC.

    Naive datetimes are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    if dt.tzinfo == timezone.utc:
        return dt
    return dt.astimezone(timezone.utc)


def format_iso(dt: datetime) -> str:
    """
    Format a datetime as ISO with a 'Z' suffix.

    Example: "2024-01-15T10:30:45.123456Z"
    """
    return ensure_utc(dt).isoformat().replace('+00:00', 'Z')


def utc_now_iso() -> str:
    """Current UTC time as an ISO string with 'Z' suffix."""
    return format_iso(utc_now())


# For testing and mocking
_mock_time: Optional[datetime] = None


def set_mock_time(dt: Optional[datetime]) -> None:
    """
    Freeze the testable clock.

    Example:
        set_mock_time(datetime(2024, 1, 1, tzinfo=timezone.utc))
        ...
        set_mock_time(None)
    """
    global _mock_time
    _mock_time = ensure_utc(dt) if dt else None


def utc_now_testable() -> datetime:
    """Mock time if set, otherwise the current UTC time."""
    return _mock_time if _mock_time else utc_now()


def epoch_seconds() -> float:
    """Seconds since the epoch, honouring ``set_mock_time``."""
    return utc_now_testable().timestamp()
