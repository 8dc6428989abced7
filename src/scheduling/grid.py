"""Calendar grid construction for day, week and month views.

Builds the ordered cells a schedule screen renders, including leading and
trailing days from adjacent months so a month grid always fills whole rows.

Weeks start on Sunday unless configured otherwise (first_day_of_week).
"""

import calendar
from datetime import date, datetime, time, timedelta, tzinfo

from src.scheduling.config import get_config
from src.scheduling.errors import InvalidConfiguration
from src.scheduling.logging import get_logger
from src.scheduling.models import CalendarCell, ViewMode

log = get_logger(__name__)

# 6 rows x 7 days, the tallest month grid
SIX_WEEK_CELLS = 42


def coerce_view_mode(
    view_mode: ViewMode | str | None, *, strict: bool = False
) -> ViewMode:
    """Resolve a view mode name to ViewMode.

    None resolves to the configured default_view_mode (week unless
    SCHEDULING_DEFAULT_VIEW_MODE says otherwise). Unknown names fall back to
    the same default and log a warning.

    Args:
        view_mode: ViewMode member, one of "day", "week", "month" (any case),
            or None.
        strict: If True, unknown names raise instead of falling back.

    Raises:
        InvalidConfiguration: If strict and the name is not a known view mode.
    """
    if isinstance(view_mode, ViewMode):
        return view_mode
    fallback = get_config().default_view_mode
    if view_mode is None:
        return fallback
    try:
        return ViewMode(str(view_mode).strip().lower())
    except ValueError:
        valid = [mode.value for mode in ViewMode]
        if strict:
            raise InvalidConfiguration(
                f"Unknown view mode {view_mode!r}. Valid: {valid}"
            )
        log.warning(
            "view_mode_fallback",
            requested=view_mode,
            fallback=fallback.value,
            valid=valid,
        )
        return fallback


def today_in(tz: tzinfo | None = None) -> date:
    """Current date at tz (default: configured timezone)."""
    if tz is None:
        tz = get_config().tzinfo
    return datetime.now(tz).date()


def start_of_week(day: date, first_weekday: int) -> date:
    """First day of the week containing day (first_weekday: 0=Monday .. 6=Sunday)."""
    return day - timedelta(days=(day.weekday() - first_weekday) % 7)


def _as_date(reference: date | datetime) -> date:
    if isinstance(reference, datetime):
        if reference.tzinfo is not None:
            reference = reference.astimezone(get_config().tzinfo)
        return reference.date()
    return reference


def _resolve_first_weekday(first_weekday: int | None) -> int:
    if first_weekday is None:
        return get_config().first_weekday
    if not 0 <= first_weekday <= 6:
        raise InvalidConfiguration(
            f"first_weekday must be 0 (Monday) .. 6 (Sunday), got {first_weekday}"
        )
    return first_weekday


def _grid_range(
    reference: date, mode: ViewMode, first_weekday: int, pad_to_six_weeks: bool
) -> tuple[date, date]:
    """First and last date (inclusive) shown by the grid."""
    if mode is ViewMode.DAY:
        return reference, reference

    if mode is ViewMode.WEEK:
        first = start_of_week(reference, first_weekday)
        return first, first + timedelta(days=6)

    month_start = reference.replace(day=1)
    days_in_month = calendar.monthrange(reference.year, reference.month)[1]
    month_end = reference.replace(day=days_in_month)

    first = start_of_week(month_start, first_weekday)
    last = start_of_week(month_end, first_weekday) + timedelta(days=6)
    if pad_to_six_weeks:
        last = first + timedelta(days=SIX_WEEK_CELLS - 1)
    return first, last


def build_grid(
    reference_date: date | datetime,
    view_mode: ViewMode | str | None = None,
    *,
    today: date | None = None,
    first_weekday: int | None = None,
    pad_to_six_weeks: bool = False,
    strict: bool = False,
) -> list[CalendarCell]:
    """Build the ordered calendar cells for the period containing reference_date.

    - day: exactly one cell, the reference date.
    - week: 7 cells from the start of the week containing the reference date.
    - month: whole weeks from the week containing the 1st through the week
      containing the last day (28, 35 or 42 cells). Days outside the month
      keep their real dates but have belongs_to_current_period=False.

    Args:
        reference_date: Any date in the period to show. Aware datetimes are
            converted to the configured timezone first.
        view_mode: Granularity (default: configured default_view_mode);
            unknown names fall back to that default (see coerce_view_mode).
        today: Override for "today" (default: now at the configured timezone).
        first_weekday: 0=Monday .. 6=Sunday (default: configured, Sunday).
        pad_to_six_weeks: Month view only; always return 42 cells so the grid
            height never changes between months.
        strict: Raise on unknown view modes instead of falling back.

    Returns:
        List of CalendarCell in date order.
    """
    mode = coerce_view_mode(view_mode, strict=strict)
    reference = _as_date(reference_date)
    weekday = _resolve_first_weekday(first_weekday)
    if today is None:
        today = today_in()

    first, last = _grid_range(reference, mode, weekday, pad_to_six_weeks)

    cells: list[CalendarCell] = []
    day = first
    while day <= last:
        if mode is ViewMode.MONTH:
            in_period = (day.year, day.month) == (reference.year, reference.month)
        else:
            in_period = True
        cells.append(
            CalendarCell(
                date=day,
                belongs_to_current_period=in_period,
                is_today=day == today,
                is_past=day < today,
            )
        )
        day += timedelta(days=1)

    log.debug(
        "calendar_grid_built",
        view_mode=mode.value,
        reference_date=reference.isoformat(),
        first=first.isoformat(),
        last=last.isoformat(),
        cells=len(cells),
    )
    return cells


def period_bounds(
    reference_date: date | datetime,
    view_mode: ViewMode | str | None = None,
    *,
    first_weekday: int | None = None,
    pad_to_six_weeks: bool = False,
) -> tuple[datetime, datetime]:
    """Half-open [start, end) datetime range covered by the grid.

    Callers use it to fetch only the sessions the grid can show. Sessions that
    start before the range but run into it still overlap it.
    """
    mode = coerce_view_mode(view_mode)
    first, last = _grid_range(
        _as_date(reference_date),
        mode,
        _resolve_first_weekday(first_weekday),
        pad_to_six_weeks,
    )
    return (
        datetime.combine(first, time.min),
        datetime.combine(last + timedelta(days=1), time.min),
    )


def shift_period(
    reference_date: date, view_mode: ViewMode | str | None = None, steps: int = 1
) -> date:
    """Reference date of the period `steps` away (negative for previous).

    Month steps clamp the day to the target month's length (Jan 31 -> Feb 29).
    """
    mode = coerce_view_mode(view_mode)
    if mode is ViewMode.DAY:
        return reference_date + timedelta(days=steps)
    if mode is ViewMode.WEEK:
        return reference_date + timedelta(weeks=steps)

    month_index = reference_date.year * 12 + (reference_date.month - 1) + steps
    year, month = divmod(month_index, 12)
    month += 1
    day = min(reference_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def month_options(
    today: date | None = None, *, months_back: int = 6, months_forward: int = 2
) -> list[tuple[str, str]]:
    """Month picker entries around today, oldest first.

    Returns:
        List of ("YYYY-MM", "March 2024") tuples.
    """
    if today is None:
        today = today_in()
    anchor = today.replace(day=1)
    options: list[tuple[str, str]] = []
    for offset in range(-months_back, months_forward + 1):
        month = shift_period(anchor, ViewMode.MONTH, offset)
        options.append(
            (month.strftime("%Y-%m"), f"{calendar.month_name[month.month]} {month.year}")
        )
    return options


def weekday_headers(first_weekday: int | None = None) -> list[str]:
    """Day names in grid column order, e.g. ["Sunday", "Monday", ...]."""
    weekday = _resolve_first_weekday(first_weekday)
    return [calendar.day_name[(weekday + offset) % 7] for offset in range(7)]
