from __future__ import annotations

from typing import Sequence

from ...core.constants import DEFAULT_OVERTIME_WEEKLY_THRESHOLD_HOURS
from ...core.exceptions import ValidationError
from ..model import OvertimeSplit, TimesheetEntry
from .base import OvertimePolicy


class WeeklyThresholdPolicy(OvertimePolicy):
    """Rolling weekly threshold.

    Entries are walked in date order (ties in submission order) with a running
    total. Hours past the threshold are overtime and land on the entries that
    pushed the total over it, so the week's overtime is exactly
    max(0, week_total - threshold).
    """

    def __init__(self, threshold_hours: float = DEFAULT_OVERTIME_WEEKLY_THRESHOLD_HOURS):
        if threshold_hours < 0:
            raise ValidationError("Overtime threshold cannot be negative")
        self._threshold_minutes = int(round(float(threshold_hours) * 60))

    @property
    def threshold_minutes(self) -> int:
        return self._threshold_minutes

    def allocate(self, entries: Sequence[TimesheetEntry]) -> list[OvertimeSplit]:
        ordered = sorted(entries, key=lambda e: (e.work_date, e.submitted_at, e.timesheet_id))
        threshold = self._threshold_minutes

        cumulative = 0
        out: list[OvertimeSplit] = []
        for e in ordered:
            prev = cumulative
            cumulative += e.total_minutes

            if prev >= threshold:
                overtime = e.total_minutes
            elif cumulative > threshold:
                overtime = cumulative - threshold
            else:
                overtime = 0

            out.append(
                OvertimeSplit(
                    timesheet_id=e.timesheet_id,
                    regular_minutes=e.total_minutes - overtime,
                    overtime_minutes=overtime,
                )
            )
        return out
