"""Timezone-aware date/time helpers for the booking engine."""

import math
import re
from datetime import date, datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

from flask import current_app

TIME_PATTERN = re.compile(r'^([01]?\d|2[0-3]):([0-5]\d)(:[0-5]\d)?$')
MINUTES_PER_DAY = 24 * 60


def get_timezone(tz_name: Optional[str] = None) -> ZoneInfo:
    """Get the given timezone, or the configured default one."""
    return ZoneInfo(tz_name or current_app.config.get('TIMEZONE', 'America/Los_Angeles'))


def get_today(tz_name: Optional[str] = None) -> date:
    """Get today's date in the venue (or configured) timezone."""
    return datetime.now(get_timezone(tz_name)).date()


def get_now(tz_name: Optional[str] = None) -> datetime:
    """Get current datetime in the venue (or configured) timezone."""
    return datetime.now(get_timezone(tz_name))


def timestamp(moment: datetime) -> str:
    """Serialize a moment for TEXT timestamp columns."""
    return moment.isoformat(timespec='seconds')


def is_valid_time(value) -> bool:
    """True for H:MM / HH:MM with optional seconds."""
    return isinstance(value, str) and bool(TIME_PATTERN.match(value.strip()))


def normalize_time(value: str) -> Optional[str]:
    """
    Canonical HH:MM form of a time string.

    '9:5' is rejected, '9:05' becomes '09:05', '14:30:59' becomes '14:30'.

    Returns:
        Normalized string, or None when the input is not a valid time
    """
    if not is_valid_time(value):
        return None
    match = TIME_PATTERN.match(value.strip())
    return f'{int(match.group(1)):02d}:{match.group(2)}'


def time_to_minutes(value: str) -> int:
    """Minutes since midnight for an HH:MM string."""
    hours, minutes = value.split(':')[:2]
    return int(hours) * 60 + int(minutes)


def minutes_to_time(total: int) -> str:
    """HH:MM string for minutes since midnight (wraps past midnight)."""
    total %= MINUTES_PER_DAY
    return f'{total // 60:02d}:{total % 60:02d}'


def add_minutes(value: str, minutes: int) -> str:
    """Add minutes to an HH:MM string."""
    return minutes_to_time(time_to_minutes(value) + minutes)


def parse_date(value) -> Optional[date]:
    """
    Parse a strict YYYY-MM-DD calendar date.

    Returns:
        date, or None for malformed input or impossible dates like 2025-02-30
    """
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not re.match(r'^\d{4}-\d{2}-\d{2}$', value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def combine(day, hhmm: str, tzinfo=None) -> datetime:
    """Datetime for a booking date and HH:MM time in the given timezone."""
    if isinstance(day, str):
        day = date.fromisoformat(day)
    hours, minutes = hhmm.split(':')[:2]
    return datetime.combine(day, time(int(hours), int(minutes)), tzinfo=tzinfo)


def minutes_until(target: datetime, now: datetime) -> float:
    """Signed minutes from now until target."""
    return (target - now).total_seconds() / 60


def ceil_minutes(value: float) -> int:
    """Round a minute count up to a whole minute."""
    return int(math.ceil(value))


def day_of_week(day) -> int:
    """Day index with Sunday = 0 and Saturday = 6."""
    if isinstance(day, str):
        day = date.fromisoformat(day)
    return (day.weekday() + 1) % 7
