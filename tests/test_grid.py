"""Unit tests for calendar grid construction."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from src.scheduling.config import get_config, reset_config
from src.scheduling.errors import InvalidConfiguration
from src.scheduling.grid import (
    build_grid,
    coerce_view_mode,
    month_options,
    period_bounds,
    shift_period,
    start_of_week,
    today_in,
    weekday_headers,
)
from src.scheduling.models import ViewMode

SUNDAY = 6
MONDAY = 0


class TestDayView:
    def test_single_cell_for_reference_date(self):
        cells = build_grid(date(2024, 3, 15), "day", today=date(2024, 3, 15))

        assert len(cells) == 1
        assert cells[0].date == date(2024, 3, 15)
        assert cells[0].belongs_to_current_period is True
        assert cells[0].is_today is True
        assert cells[0].is_past is False


class TestWeekView:
    @pytest.mark.parametrize(
        "reference",
        [date(2024, 3, 10), date(2024, 3, 13), date(2024, 3, 16), date(2024, 12, 31)],
    )
    def test_seven_cells_starting_sunday(self, reference):
        cells = build_grid(reference, ViewMode.WEEK, today=date(2024, 1, 1))

        assert len(cells) == 7
        assert cells[0].date.weekday() == SUNDAY
        assert reference in [c.date for c in cells]
        assert all(c.belongs_to_current_period for c in cells)

    def test_week_crossing_year_boundary(self):
        cells = build_grid(date(2025, 1, 1), "week", today=date(2025, 1, 1))

        assert cells[0].date == date(2024, 12, 29)
        assert cells[-1].date == date(2025, 1, 4)

    def test_configurable_first_weekday(self):
        cells = build_grid(
            date(2024, 3, 15), "week", today=date(2024, 3, 15), first_weekday=MONDAY
        )

        assert cells[0].date == date(2024, 3, 11)
        assert cells[0].date.weekday() == MONDAY

    def test_first_weekday_from_environment(self, monkeypatch):
        monkeypatch.setenv("SCHEDULING_FIRST_DAY_OF_WEEK", "monday")
        reset_config()

        cells = build_grid(date(2024, 3, 15), "week", today=date(2024, 3, 15))

        assert cells[0].date == date(2024, 3, 11)

    def test_today_and_past_flags(self):
        cells = build_grid(date(2024, 3, 13), "week", today=date(2024, 3, 13))
        flags = {c.date: (c.is_today, c.is_past) for c in cells}

        assert flags[date(2024, 3, 10)] == (False, True)
        assert flags[date(2024, 3, 12)] == (False, True)
        assert flags[date(2024, 3, 13)] == (True, False)
        assert flags[date(2024, 3, 14)] == (False, False)


class TestMonthView:
    def test_march_2024(self):
        cells = build_grid(date(2024, 3, 15), "month", today=date(2024, 3, 20))

        # March 1st is a Friday and March 31st a Sunday, so six rows are needed
        assert cells[0].date == date(2024, 2, 25)
        assert cells[0].date.weekday() == SUNDAY
        assert cells[-1].date == date(2024, 4, 6)
        assert cells[-1].date.weekday() == 5
        assert len(cells) == 42

        by_date = {c.date: c for c in cells}
        assert by_date[date(2024, 3, 15)].belongs_to_current_period is True
        assert by_date[date(2024, 3, 31)].belongs_to_current_period is True
        assert by_date[date(2024, 2, 29)].belongs_to_current_period is False
        assert by_date[date(2024, 4, 1)].belongs_to_current_period is False

    def test_five_row_month(self):
        # May 2024: Wednesday 1st .. Friday 31st
        cells = build_grid(date(2024, 5, 15), "month", today=date(2024, 5, 1))

        assert cells[0].date == date(2024, 4, 28)
        assert cells[-1].date == date(2024, 6, 1)
        assert len(cells) == 35

    def test_four_row_february(self):
        # February 2026 starts on a Sunday and has 28 days
        cells = build_grid(date(2026, 2, 10), "month", today=date(2026, 2, 10))

        assert len(cells) == 28
        assert cells[0].date == date(2026, 2, 1)
        assert all(c.belongs_to_current_period for c in cells)

    @pytest.mark.parametrize("month", range(1, 13))
    @pytest.mark.parametrize("year", [2023, 2024, 2025])
    def test_whole_weeks(self, year, month):
        cells = build_grid(date(year, month, 1), "month", today=date(2024, 1, 1))

        assert len(cells) % 7 == 0
        assert len(cells) >= 28
        assert cells[0].date.weekday() == SUNDAY
        in_month = [c.date for c in cells if c.belongs_to_current_period]
        assert in_month[0] == date(year, month, 1)
        assert all(d.month == month for d in in_month)
        # Consecutive dates, no gaps
        assert all(
            b.date - a.date == timedelta(days=1) for a, b in zip(cells, cells[1:])
        )

    def test_pad_to_six_weeks(self):
        cells = build_grid(
            date(2024, 5, 15), "month", today=date(2024, 5, 1), pad_to_six_weeks=True
        )

        assert len(cells) == 42
        assert cells[-1].date == date(2024, 6, 8)

    def test_out_of_period_days_keep_flags(self):
        cells = build_grid(date(2024, 3, 15), "month", today=date(2024, 3, 1))
        by_date = {c.date: c for c in cells}

        assert by_date[date(2024, 2, 25)].is_past is True
        assert by_date[date(2024, 4, 6)].is_past is False


class TestViewModeHandling:
    def test_unknown_mode_falls_back_to_week(self):
        cells = build_grid(date(2024, 3, 15), "fortnight", today=date(2024, 3, 15))

        assert len(cells) == 7
        assert cells[0].date == date(2024, 3, 10)

    def test_unknown_mode_strict_raises(self):
        with pytest.raises(InvalidConfiguration):
            build_grid(date(2024, 3, 15), "fortnight", strict=True)

    def test_mode_names_case_insensitive(self):
        assert coerce_view_mode(" Month ") is ViewMode.MONTH

    def test_invalid_first_weekday(self):
        with pytest.raises(InvalidConfiguration):
            build_grid(date(2024, 3, 15), "week", first_weekday=7)

    def test_configured_default_used_for_unknown_mode(self, monkeypatch):
        monkeypatch.setenv("SCHEDULING_DEFAULT_VIEW_MODE", "month")
        reset_config()

        cells = build_grid(date(2024, 3, 15), "fortnight", today=date(2024, 3, 15))

        assert len(cells) == 42
        assert cells[0].date == date(2024, 2, 25)

    def test_configured_default_used_when_mode_omitted(self, monkeypatch):
        monkeypatch.setenv("SCHEDULING_DEFAULT_VIEW_MODE", "day")
        reset_config()

        assert len(build_grid(date(2024, 3, 15), today=date(2024, 3, 15))) == 1
        assert coerce_view_mode(None) is ViewMode.DAY
        assert period_bounds(date(2024, 3, 15)) == (
            datetime(2024, 3, 15),
            datetime(2024, 3, 16),
        )

    def test_invalid_configured_default_rejected(self, monkeypatch):
        monkeypatch.setenv("SCHEDULING_DEFAULT_VIEW_MODE", "fortnight")
        reset_config()

        with pytest.raises(ValidationError):
            get_config()


class TestIdempotence:
    @pytest.mark.parametrize("mode", ["day", "week", "month"])
    def test_same_inputs_same_grid(self, mode):
        first = build_grid(date(2024, 3, 15), mode, today=date(2024, 3, 15))
        second = build_grid(date(2024, 3, 15), mode, today=date(2024, 3, 15))

        assert first == second


def test_aware_reference_uses_configured_timezone(monkeypatch):
    monkeypatch.setenv("SCHEDULING_TIMEZONE", "America/New_York")
    reset_config()

    # 02:00 UTC on the 16th is still the 15th in New York
    reference = datetime(2024, 3, 16, 2, 0, tzinfo=timezone.utc)
    cells = build_grid(reference, "day", today=date(2024, 3, 15))

    assert cells[0].date == date(2024, 3, 15)
    assert cells[0].is_today is True


def test_today_follows_configured_timezone(monkeypatch):
    monkeypatch.setenv("SCHEDULING_TIMEZONE", "Pacific/Kiritimati")
    reset_config()

    cells = build_grid(today_in(), "week")

    expected = datetime.now(ZoneInfo("Pacific/Kiritimati")).date()
    todays = [cell for cell in cells if cell.is_today]
    assert [cell.date for cell in todays] == [expected]
    assert all(cell.is_past for cell in cells if cell.date < expected)


def test_start_of_week():
    assert start_of_week(date(2024, 3, 10), SUNDAY) == date(2024, 3, 10)
    assert start_of_week(date(2024, 3, 16), SUNDAY) == date(2024, 3, 10)
    assert start_of_week(date(2024, 3, 10), MONDAY) == date(2024, 3, 4)


class TestPeriodBounds:
    def test_week_bounds_half_open(self):
        start, end = period_bounds(date(2024, 3, 15), "week")

        assert start == datetime(2024, 3, 10)
        assert end == datetime(2024, 3, 17)

    def test_month_bounds_match_grid(self):
        cells = build_grid(date(2024, 3, 15), "month", today=date(2024, 3, 15))
        start, end = period_bounds(date(2024, 3, 15), "month")

        assert start.date() == cells[0].date
        assert end.date() == cells[-1].date + timedelta(days=1)

    def test_day_bounds(self):
        assert period_bounds(date(2024, 3, 15), "day") == (
            datetime(2024, 3, 15),
            datetime(2024, 3, 16),
        )


class TestShiftPeriod:
    def test_day_and_week(self):
        assert shift_period(date(2024, 3, 15), "day", -1) == date(2024, 3, 14)
        assert shift_period(date(2024, 3, 15), "week", 1) == date(2024, 3, 22)

    def test_month_clamps_day(self):
        assert shift_period(date(2024, 1, 31), "month", 1) == date(2024, 2, 29)
        assert shift_period(date(2024, 3, 31), "month", -1) == date(2024, 2, 29)

    def test_month_across_years(self):
        assert shift_period(date(2024, 12, 15), "month", 1) == date(2025, 1, 15)
        assert shift_period(date(2024, 1, 15), "month", -1) == date(2023, 12, 15)


def test_month_options():
    options = month_options(date(2024, 3, 15))

    assert len(options) == 9
    assert options[0] == ("2023-09", "September 2023")
    assert options[6] == ("2024-03", "March 2024")
    assert options[-1] == ("2024-05", "May 2024")


def test_weekday_headers():
    assert weekday_headers(SUNDAY)[:2] == ["Sunday", "Monday"]
    assert weekday_headers(MONDAY)[-1] == "Sunday"
