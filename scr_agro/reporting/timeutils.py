"""
Timestamp helpers for the reporting engine.
"""

from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Any, Optional
from zoneinfo import ZoneInfo


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a backend timestamp leniently.

    Accepts datetime, date and ISO-8601 strings. Anything that cannot be
    read as a point in time yields None instead of raising.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


@lru_cache(maxsize=32)
def get_zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def to_local(value: datetime, tz_name: str) -> datetime:
    """Convert an aware timestamp into the reporting timezone; naive values are already local."""
    if value.tzinfo is None:
        return value
    return value.astimezone(get_zone(tz_name))


def local_now(tz_name: str) -> datetime:
    """Current wall-clock time in the reporting timezone."""
    return datetime.now(get_zone(tz_name))


def sort_key(value: Optional[datetime]) -> float:
    """Comparable key for mixed naive/aware timestamps; missing sorts first."""
    if value is None:
        return float("-inf")
    if value.tzinfo is None:
        # Naive values are read as UTC for ordering purposes
        return value.replace(tzinfo=timezone.utc).timestamp()
    return value.timestamp()
