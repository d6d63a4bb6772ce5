from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Protocol, Sequence

from ..core.enums import TimesheetStatus
from .model import TimesheetEntry


class TimesheetRepository(Protocol):
    def create(
        self,
        *,
        worker_id: int,
        work_date: date,
        start_time: time,
        end_time: time,
        break_minutes: int,
        total_minutes: int,
        week_number: int,
        submitted_at: datetime,
        project: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def get(self, timesheet_id: int) -> Optional[TimesheetEntry]:
        raise NotImplementedError

    def list(
        self,
        *,
        worker_id: Optional[int] = None,
        week_number: Optional[int] = None,
        year: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> Sequence[TimesheetEntry]:
        """Newest first."""

        raise NotImplementedError

    def set_status(
        self,
        *,
        timesheet_id: int,
        status: TimesheetStatus,
        actor: str,
        at: datetime,
        expected: TimesheetStatus,
    ) -> bool:
        """Conditional update: only applies while the row still has ``expected`` status."""

        raise NotImplementedError

    def update_content(
        self,
        *,
        timesheet_id: int,
        start_time: time,
        end_time: time,
        break_minutes: int,
        total_minutes: int,
        notes: Optional[str],
        edited_by: str,
        edited_at: datetime,
    ) -> bool:
        raise NotImplementedError

    def delete(self, timesheet_id: int) -> bool:
        raise NotImplementedError
