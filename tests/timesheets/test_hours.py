from datetime import date, time

import pytest

from site_attendance.core.exceptions import InvalidTimeRange, ValidationError
from site_attendance.timesheets.hours import (
    parse_break_minutes,
    week_bounds,
    week_number,
    week_start,
    worked_minutes,
)


def test_worked_minutes_subtracts_break():
    assert worked_minutes(time(7, 0), time(17, 0), 30) == 570


def test_overnight_shift_wraps():
    assert worked_minutes(time(22, 0), time(6, 0)) == 480


def test_break_longer_than_shift_is_an_error():
    with pytest.raises(InvalidTimeRange):
        worked_minutes(time(7, 0), time(8, 0), 90)


def test_negative_break_is_rejected():
    with pytest.raises(ValidationError):
        worked_minutes(time(7, 0), time(8, 0), -5)
    with pytest.raises(ValidationError):
        parse_break_minutes("-5")
    with pytest.raises(ValidationError):
        parse_break_minutes("half an hour")
    assert parse_break_minutes("") == 0
    assert parse_break_minutes("45") == 45


def test_week_number_starts_on_first_sunday():
    # 2026-01-01 is a Thursday; the first Sunday is Jan 4.
    assert week_number(date(2026, 1, 1)) == 0
    assert week_number(date(2026, 1, 3)) == 0
    assert week_number(date(2026, 1, 4)) == 1
    assert week_number(date(2026, 1, 10)) == 1
    assert week_number(date(2026, 1, 11)) == 2


def test_week_number_when_year_starts_on_sunday():
    # 2023-01-01 is a Sunday.
    assert week_number(date(2023, 1, 1)) == 1
    assert week_number(date(2023, 1, 7)) == 1
    assert week_number(date(2023, 1, 8)) == 2


def test_week_start_and_bounds():
    assert week_start(date(2026, 6, 1)) == date(2026, 5, 31)
    assert week_start(date(2026, 5, 31)) == date(2026, 5, 31)
    assert week_bounds(date(2026, 6, 3)) == (date(2026, 5, 31), date(2026, 6, 6))
