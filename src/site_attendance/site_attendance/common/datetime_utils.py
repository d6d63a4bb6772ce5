from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from ..core.constants import DEFAULT_SITE_TIMEZONE
from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")


def parse_clock_time(value: str) -> time:
    """Parse HH:MM or HH:MM:SS into time."""
    v = (value or "").strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue
    raise ValidationError(f"Invalid time (HH:MM): {value!r}")


class SiteClock:
    """Single source of "now" and "today" for the whole site.

    Business dates are computed in the site's timezone, never the server's
    locale, so a server running in UTC and a crew in Eastern time agree on
    where midnight falls. Naive datetimes are taken to be UTC.
    """

    def __init__(self, tz_name: str = DEFAULT_SITE_TIMEZONE):
        self._tz = ZoneInfo(tz_name)

    @property
    def tz(self) -> ZoneInfo:
        return self._tz

    def now(self) -> datetime:
        # Wrapped so tests can patch/mock easier.
        return datetime.now(timezone.utc).astimezone(self._tz)

    def localize(self, instant: datetime) -> datetime:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(self._tz)

    def business_date(self, instant: datetime | None = None) -> date:
        return self.localize(instant or self.now()).date()

    def today(self) -> date:
        return self.business_date(self.now())

    def at(self, work_date: date, clock_time: time) -> datetime:
        """Site-local instant for a wall-clock time on a business date."""
        return datetime.combine(work_date, clock_time, tzinfo=self._tz)

    def previous_business_date(self, as_of: date) -> date:
        return as_of - timedelta(days=1)
