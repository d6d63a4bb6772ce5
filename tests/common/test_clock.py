from datetime import date, datetime, time, timezone

import pytest

from site_attendance.common.datetime_utils import SiteClock, parse_clock_time, parse_iso_date
from site_attendance.core.exceptions import ValidationError


def test_naive_datetimes_are_utc():
    clock = SiteClock("America/New_York")
    local = clock.localize(datetime(2026, 1, 15, 3, 0))
    assert local.hour == 22
    assert local.date() == date(2026, 1, 14)


def test_business_date_follows_site_midnight():
    clock = SiteClock("America/New_York")
    assert clock.business_date(datetime(2026, 6, 2, 3, 59, tzinfo=timezone.utc)) == date(2026, 6, 1)
    assert clock.business_date(datetime(2026, 6, 2, 4, 0, tzinfo=timezone.utc)) == date(2026, 6, 2)


def test_same_instant_different_sites():
    instant = datetime(2026, 6, 2, 3, 0, tzinfo=timezone.utc)
    assert SiteClock("America/New_York").business_date(instant) == date(2026, 6, 1)
    assert SiteClock("Europe/Lisbon").business_date(instant) == date(2026, 6, 2)


def test_at_builds_site_local_instant():
    clock = SiteClock("America/Toronto")
    at = clock.at(date(2026, 6, 1), time(7, 0))
    assert at.utcoffset().total_seconds() == -4 * 3600
    assert clock.business_date(at) == date(2026, 6, 1)


def test_now_is_aware_and_in_site_zone():
    clock = SiteClock("America/New_York")
    now = clock.now()
    assert now.tzinfo is not None
    assert clock.today() == now.date()


def test_parse_helpers():
    assert parse_iso_date("2026-06-01") == date(2026, 6, 1)
    assert parse_clock_time("07:05") == time(7, 5)
    assert parse_clock_time("16:30:15") == time(16, 30, 15)

    with pytest.raises(ValidationError):
        parse_iso_date("06/01/2026")
    with pytest.raises(ValidationError):
        parse_clock_time("7am")
