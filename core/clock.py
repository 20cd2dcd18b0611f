"""
Clock abstraction and timestamp helpers.

Timestamps are persisted as ISO-8601 UTC strings with second precision so
that lexical order in SQLite equals chronological order.
"""

from datetime import datetime, timezone
from typing import Optional, Protocol, Union


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Clock returning the current UTC time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(microsecond=0)


class FixedClock:
    """Clock frozen at a given instant, used by tests and replays."""

    def __init__(self, instant: datetime) -> None:
        self.instant = _as_utc(instant)

    def now(self) -> datetime:
        return self.instant

    def set(self, instant: datetime) -> None:
        self.instant = _as_utc(instant)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0)


def from_timestamp(seconds: int) -> datetime:
    """Convert Unix epoch seconds to an aware UTC datetime."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def format_datetime(value: datetime) -> str:
    """Render a datetime the way it is stored, e.g. 2019-01-01T10:00:00+00:00."""
    return _as_utc(value).isoformat()


def parse_datetime(value: Union[str, int, None]) -> Optional[datetime]:
    """Parse a stored or submitted timestamp.

    Accepts ISO-8601 strings (with or without offset, ``T`` or space
    separated) and Unix epoch integers. Returns None when the value is
    missing or cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, int):
        return from_timestamp(value)
    text = str(value).strip()
    if not text:
        return None
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return _as_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


EPOCH = from_timestamp(0)
