"""Bookable time slot generation for a single day."""

from datetime import date, datetime, time, timedelta

from src.scheduling.config import SchedulingConfig, get_config
from src.scheduling.errors import InvalidConfiguration
from src.scheduling.models import TimeSlot
from src.scheduling.utils import format_label, parse_time

# Slots are computed on a fixed anchor day; only the wall-clock part is kept
_ANCHOR = date(2000, 1, 1)


def generate_slots(
    start_time: time | str, end_time: time | str, interval_minutes: int
) -> list[TimeSlot]:
    """Generate contiguous slots covering [start_time, end_time).

    Slots begin at start_time and stop once a slot's start would reach
    end_time. When the interval does not divide the range evenly the last
    slot is shortened to end exactly at end_time.

    Args:
        start_time: First slot start, datetime.time or "HH:MM".
        end_time: End of the bookable day (exclusive), datetime.time or "HH:MM".
        interval_minutes: Slot length, a positive integer.

    Returns:
        List of TimeSlot in start order.

    Raises:
        InvalidConfiguration: If the interval is not a positive integer, a time
            cannot be parsed, or start_time is not before end_time.
    """
    if (
        isinstance(interval_minutes, bool)
        or not isinstance(interval_minutes, int)
        or interval_minutes <= 0
    ):
        raise InvalidConfiguration(
            f"interval_minutes must be a positive integer, got {interval_minutes!r}"
        )

    start = parse_time(start_time)
    end = parse_time(end_time)
    if start >= end:
        raise InvalidConfiguration(
            f"start_time {start:%H:%M} must be before end_time {end:%H:%M}"
        )

    # No slot outlasts a day, so longer intervals yield one clipped slot
    step = timedelta(minutes=min(interval_minutes, 24 * 60))
    current = datetime.combine(_ANCHOR, start)
    limit = datetime.combine(_ANCHOR, end)

    slots: list[TimeSlot] = []
    while current < limit:
        slot_end = current + min(step, limit - current)
        slots.append(
            TimeSlot(
                start_time=current.time(),
                end_time=slot_end.time(),
                label=format_label(current.time()),
            )
        )
        current = slot_end
    return slots


def default_slots(config: SchedulingConfig | None = None) -> list[TimeSlot]:
    """Slots for the configured bookable day (08:00-20:00 hourly by default)."""
    if config is None:
        config = get_config()
    return generate_slots(
        config.slot_start, config.slot_end, config.slot_interval_minutes
    )
