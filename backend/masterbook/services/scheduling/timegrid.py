# backend/masterbook/services/scheduling/timegrid.py
"""
Clock-time and calendar helpers.

All instants are UTC. A bare calendar date is anchored at midnight UTC, so
day-of-week never depends on the server's local timezone.
"""

import re
from datetime import date, datetime, timezone

from ...errors import InvalidDate, InvalidFormat, ValidationError

MINUTES_PER_DAY = 24 * 60

_TIME_RE = re.compile(r"^(\d{2}):(\d{2})$")
_CLOCK_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

INSTANT_FORMAT = "%Y-%m-%dT%H:%M:%S.000Z"

# Four-digit years, with a day of headroom on both ends for slot arithmetic
MIN_DATE = date(1000, 1, 2)
MAX_DATE = date(9998, 12, 31)


def time_to_minutes(text: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    match = _TIME_RE.match(text) if isinstance(text, str) else None
    if not match:
        raise InvalidFormat(f"Invalid time {text!r}, expected HH:MM")
    hours, minutes = match.groups()
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM" (hours are not wrapped at 24)."""
    if minutes < 0:
        raise ValueError(f"minutes must be >= 0, got {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def is_clock_time(text) -> bool:
    """True for a wall-clock time between 00:00 and 23:59."""
    return isinstance(text, str) and bool(_CLOCK_RE.match(text))


def is_iso_date(text) -> bool:
    return isinstance(text, str) and bool(_DATE_RE.match(text))


def parse_date(text: str) -> date:
    """Parse "YYYY-MM-DD"."""
    if not is_iso_date(text):
        raise InvalidDate(f"Invalid date {text!r}, expected YYYY-MM-DD")
    try:
        parsed = date.fromisoformat(text)
    except ValueError:
        raise InvalidDate(f"Invalid date {text!r}, expected YYYY-MM-DD") from None
    if not MIN_DATE <= parsed <= MAX_DATE:
        raise InvalidDate(f"Date {text} is outside {MIN_DATE}..{MAX_DATE}")
    return parsed


def day_of_week(target_date: date) -> int:
    """Day of week with 0 = Sunday .. 6 = Saturday."""
    return (target_date.weekday() + 1) % 7


def utc_midnight(target_date: date) -> datetime:
    return datetime(target_date.year, target_date.month, target_date.day, tzinfo=timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def calendar_date(instant: datetime) -> date:
    """UTC calendar date of an instant."""
    return to_utc(instant).date()


def format_instant(instant: datetime) -> str:
    """Serialize as "YYYY-MM-DDTHH:MM:SS.000Z"."""
    return to_utc(instant).strftime(INSTANT_FORMAT)


def parse_instant(value) -> datetime:
    """Parse an ISO-8601 timestamp (or pass a datetime through) into aware UTC."""
    if isinstance(value, datetime):
        instant = value
    elif isinstance(value, str) and value:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            instant = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"Invalid timestamp {value!r}") from None
    else:
        raise ValidationError(f"Invalid timestamp {value!r}")

    try:
        instant = to_utc(instant)
    except OverflowError:
        raise ValidationError(f"Timestamp {value!r} is out of range") from None
    if not MIN_DATE <= instant.date() <= MAX_DATE:
        raise ValidationError(f"Timestamp {value!r} is outside {MIN_DATE}..{MAX_DATE}")
    return instant
