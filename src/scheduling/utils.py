"""Shared time helpers for grid, slot and projection code."""

from datetime import date, datetime, time, timedelta, tzinfo

from src.scheduling.errors import InvalidConfiguration

# Accepted wall-clock formats for slot boundaries ("08:00", "8:00", "08:00:00")
_TIME_FORMATS: tuple[str, ...] = ("%H:%M", "%H:%M:%S")


def parse_time(value: time | str) -> time:
    """Parse a 24-hour wall-clock time.

    Args:
        value: A datetime.time or an "HH:MM" / "HH:MM:SS" string.

    Raises:
        InvalidConfiguration: If the string is not a valid 24-hour time.
    """
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        for fmt in _TIME_FORMATS:
            try:
                return datetime.strptime(value.strip(), fmt).time()
            except ValueError:
                continue
    raise InvalidConfiguration(f"Invalid time of day {value!r}, expected HH:MM")


def format_label(value: time) -> str:
    """Format a time as a 12-hour label, e.g. 08:00 -> '8:00 AM', 12:30 -> '12:30 PM'."""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def to_local(value: datetime, tz: tzinfo) -> datetime:
    """Convert a timestamp to naive local wall-clock time at tz.

    Naive timestamps are taken as already local and returned unchanged.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(tz).replace(tzinfo=None)


def dates_spanned(start: datetime, end: datetime) -> list[date]:
    """Calendar dates touched by the half-open interval [start, end).

    A session ending exactly at midnight does not touch the following day.
    """
    if end <= start:
        return []
    last = (end - timedelta(microseconds=1)).date()
    days: list[date] = []
    day = start.date()
    while day <= last:
        days.append(day)
        day += timedelta(days=1)
    return days


def overlaps(
    start: datetime, end: datetime, window_start: datetime, window_end: datetime
) -> bool:
    """Half-open interval overlap: [start, end) intersects [window_start, window_end)."""
    return start < window_end and end > window_start
