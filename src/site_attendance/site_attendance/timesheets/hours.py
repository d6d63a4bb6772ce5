from __future__ import annotations

from datetime import date, datetime, time, timedelta

from ..core.exceptions import InvalidTimeRange, ValidationError

MINUTES_PER_DAY = 24 * 60


def worked_minutes(start: time, end: time, break_minutes: int = 0) -> int:
    """(end - start) - break, in whole minutes.

    An end before the start is an overnight shift and wraps by 24h. A
    negative result is an error, never clamped to zero.
    """

    if break_minutes is None:
        break_minutes = 0
    if int(break_minutes) < 0:
        raise ValidationError("Break duration cannot be negative")

    start_m = start.hour * 60 + start.minute
    end_m = end.hour * 60 + end.minute
    span = end_m - start_m
    if span < 0:
        span += MINUTES_PER_DAY

    total = span - int(break_minutes)
    if total < 0:
        raise InvalidTimeRange(
            f"Break ({break_minutes} min) is longer than the shift {start:%H:%M}-{end:%H:%M}"
        )
    return total


def first_sunday(year: int) -> date:
    jan1 = date(year, 1, 1)
    # weekday(): Monday=0 .. Sunday=6
    return jan1 + timedelta(days=(6 - jan1.weekday()) % 7)


def week_number(day: date) -> int:
    """Sunday-anchored week of the year: week 1 starts on the first Sunday.

    Days of January before that Sunday fall in week 0.
    """

    start = first_sunday(day.year)
    if day < start:
        return 0
    return (day - start).days // 7 + 1


def week_start(day: date) -> date:
    """The Sunday on or before ``day``."""

    return day - timedelta(days=(day.weekday() + 1) % 7)


def week_bounds(day: date) -> tuple[date, date]:
    start = week_start(day)
    return start, start + timedelta(days=6)


def parse_break_minutes(value) -> int:
    if value is None or value == "":
        return 0
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Break duration must be a whole number of minutes")
    if minutes < 0:
        raise ValidationError("Break duration cannot be negative")
    return minutes
