from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import TimesheetStatus


def _hours(minutes: int) -> float:
    return round(minutes / 60, 2)


@dataclass(frozen=True)
class TimesheetEntry:
    """Domain entity: one submitted day of work for one worker."""

    timesheet_id: int
    worker_id: int
    work_date: date
    start_time: time
    end_time: time
    break_minutes: int
    total_minutes: int
    week_number: int
    status: TimesheetStatus
    submitted_at: datetime
    project: Optional[str] = None
    notes: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[str] = None
    edited_by: Optional[str] = None
    edited_at: Optional[datetime] = None

    @property
    def total_hours(self) -> float:
        return _hours(self.total_minutes)

    def to_dict(self) -> dict:
        def _ts(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "id": self.timesheet_id,
            "worker_id": self.worker_id,
            "date": self.work_date.isoformat(),
            "project": self.project,
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "break_minutes": self.break_minutes,
            "total_hours": self.total_hours,
            "week_number": self.week_number,
            "status": self.status.value,
            "notes": self.notes,
            "submitted_at": _ts(self.submitted_at),
            "approved_by": self.approved_by,
            "approved_at": _ts(self.approved_at),
            "rejected_by": self.rejected_by,
            "edited_by": self.edited_by,
            "edited_at": _ts(self.edited_at),
        }


@dataclass(frozen=True)
class OvertimeSplit:
    """Regular/overtime attribution for one entry, exact in minutes."""

    timesheet_id: int
    regular_minutes: int
    overtime_minutes: int

    @property
    def regular_hours(self) -> float:
        return _hours(self.regular_minutes)

    @property
    def overtime_hours(self) -> float:
        return _hours(self.overtime_minutes)
