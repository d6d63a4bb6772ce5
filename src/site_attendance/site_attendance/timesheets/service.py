from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Iterable, Optional

from ..attendance.events import TimesheetSubmitted
from ..attendance.service import AttendanceService
from ..common.validators import require_non_empty
from ..core.enums import TimesheetStatus
from ..core.exceptions import (
    DomainError,
    InvalidTransition,
    StorageUnavailable,
    TimesheetNotFound,
    ValidationError,
    WorkerNotFound,
)
from ..workers.repository import WorkerRepository
from .hours import week_bounds, week_number, week_start, worked_minutes
from .model import OvertimeSplit, TimesheetEntry
from .overtime.base import OvertimePolicy
from .overtime.weekly_threshold import WeeklyThresholdPolicy
from .repository import TimesheetRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewTimesheet:
    worker_id: int
    work_date: date
    start_time: time
    end_time: time
    break_minutes: int = 0
    project: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class TimesheetEdit:
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    break_minutes: Optional[int] = None
    notes: Optional[str] = None


class TimesheetService:
    """Timesheet lifecycle plus overtime attribution on read.

    pending -> approved | rejected. Edits are allowed in any state and never
    change the status. Deletion is allowed in any state.
    """

    def __init__(
        self,
        timesheets: TimesheetRepository,
        workers: WorkerRepository,
        attendance: AttendanceService,
        *,
        policy: OvertimePolicy | None = None,
    ):
        self._timesheets = timesheets
        self._workers = workers
        self._attendance = attendance
        self._policy = policy or WeeklyThresholdPolicy()

    def _now(self) -> datetime:
        return self._attendance.clock.now()

    def _get_or_raise(self, timesheet_id: int) -> TimesheetEntry:
        entry = self._timesheets.get(int(timesheet_id))
        if not entry:
            raise TimesheetNotFound("Timesheet not found")
        return entry

    def submit(self, new: NewTimesheet) -> TimesheetEntry:
        if not self._workers.get_by_id(int(new.worker_id)):
            raise WorkerNotFound(f"Worker not found: {new.worker_id}")

        total = worked_minutes(new.start_time, new.end_time, new.break_minutes)
        now = self._now()
        timesheet_id = self._timesheets.create(
            worker_id=int(new.worker_id),
            work_date=new.work_date,
            start_time=new.start_time,
            end_time=new.end_time,
            break_minutes=int(new.break_minutes or 0),
            total_minutes=total,
            week_number=week_number(new.work_date),
            submitted_at=now,
            project=(new.project or "").strip() or None,
            notes=(new.notes or "").strip() or None,
        )

        # The timesheet is already stored; a failed attendance update must not
        # make the client resubmit it. The record can be rebuilt by repair.
        try:
            self._attendance.reconcile(
                TimesheetSubmitted(
                    worker_id=int(new.worker_id),
                    work_date=new.work_date,
                    start_time=new.start_time,
                    occurred_at=now,
                )
            )
        except (DomainError, StorageUnavailable):
            logger.exception("attendance update failed for timesheet_id=%s", timesheet_id)

        return self._get_or_raise(timesheet_id)

    def approve(self, timesheet_id: int, *, approved_by: str) -> TimesheetEntry:
        return self._decide(timesheet_id, TimesheetStatus.APPROVED, actor=approved_by)

    def reject(self, timesheet_id: int, *, rejected_by: str) -> TimesheetEntry:
        return self._decide(timesheet_id, TimesheetStatus.REJECTED, actor=rejected_by)

    def _decide(self, timesheet_id: int, status: TimesheetStatus, *, actor: str) -> TimesheetEntry:
        actor = require_non_empty(actor, "Reviewer")
        entry = self._get_or_raise(timesheet_id)
        if entry.status != TimesheetStatus.PENDING:
            raise InvalidTransition(f"Timesheet is already {entry.status.value}")

        ok = self._timesheets.set_status(
            timesheet_id=entry.timesheet_id,
            status=status,
            actor=actor,
            at=self._now(),
            expected=TimesheetStatus.PENDING,
        )
        if not ok:
            # Someone else decided it between our read and write.
            current = self._get_or_raise(timesheet_id)
            raise InvalidTransition(f"Timesheet is already {current.status.value}")

        logger.info("timesheet_id=%s %s by %s", entry.timesheet_id, status.value, actor)
        return self._get_or_raise(timesheet_id)

    def edit(self, timesheet_id: int, changes: TimesheetEdit, *, edited_by: str) -> TimesheetEntry:
        edited_by = require_non_empty(edited_by, "Editor")
        entry = self._get_or_raise(timesheet_id)

        start = changes.start_time or entry.start_time
        end = changes.end_time or entry.end_time
        break_minutes = entry.break_minutes if changes.break_minutes is None else int(changes.break_minutes)
        notes = entry.notes if changes.notes is None else (changes.notes.strip() or None)

        self._timesheets.update_content(
            timesheet_id=entry.timesheet_id,
            start_time=start,
            end_time=end,
            break_minutes=break_minutes,
            total_minutes=worked_minutes(start, end, break_minutes),
            notes=notes,
            edited_by=edited_by,
            edited_at=self._now(),
        )
        return self._get_or_raise(timesheet_id)

    def delete(self, timesheet_id: int) -> TimesheetEntry:
        entry = self._get_or_raise(timesheet_id)
        if not self._timesheets.delete(entry.timesheet_id):
            raise TimesheetNotFound("Timesheet not found")
        logger.info("timesheet_id=%s deleted", entry.timesheet_id)
        return entry

    def allocate_week(self, worker_id: int, any_day: date) -> list[OvertimeSplit]:
        start, end = week_bounds(any_day)
        entries = self._timesheets.list(worker_id=int(worker_id), start_date=start, end_date=end)
        return self._policy.allocate(entries)

    def _allocations_for(self, entries: Iterable[TimesheetEntry]) -> dict[int, OvertimeSplit]:
        """Allocate over complete weeks even when ``entries`` is a partial listing."""

        ranges: dict[int, tuple[date, date]] = {}
        for e in entries:
            lo, hi = week_bounds(e.work_date)
            if e.worker_id in ranges:
                cur_lo, cur_hi = ranges[e.worker_id]
                ranges[e.worker_id] = (min(cur_lo, lo), max(cur_hi, hi))
            else:
                ranges[e.worker_id] = (lo, hi)

        splits: dict[int, OvertimeSplit] = {}
        for worker_id, (lo, hi) in ranges.items():
            weeks: dict[date, list[TimesheetEntry]] = defaultdict(list)
            for e in self._timesheets.list(worker_id=worker_id, start_date=lo, end_date=hi):
                weeks[week_start(e.work_date)].append(e)
            for week_entries in weeks.values():
                for split in self._policy.allocate(week_entries):
                    splits[split.timesheet_id] = split
        return splits

    def list_entries(
        self,
        *,
        worker_id: Optional[int] = None,
        week: Optional[int] = None,
        year: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        entries = self._timesheets.list(worker_id=worker_id, week_number=week, year=year, limit=limit)
        splits = self._allocations_for(entries)
        names = self._worker_names(e.worker_id for e in entries)

        out: list[dict] = []
        for e in entries:
            row = e.to_dict()
            split = splits.get(e.timesheet_id)
            row["worker_name"] = names.get(e.worker_id)
            row["regular_hours"] = split.regular_hours if split else e.total_hours
            row["overtime_hours"] = split.overtime_hours if split else 0.0
            out.append(row)
        return out

    def weekly_summary(self, *, week: int, year: int) -> list[dict]:
        if week is None or year is None:
            raise ValidationError("Week and year are required")

        entries = self._timesheets.list(week_number=int(week), year=int(year))
        splits = self._allocations_for(entries)
        names = self._worker_names(e.worker_id for e in entries)

        totals: dict[int, dict] = {}
        for e in entries:
            s = totals.setdefault(
                e.worker_id,
                {"regular": 0, "overtime": 0, "total": 0, "days": set()},
            )
            split = splits.get(e.timesheet_id)
            s["regular"] += split.regular_minutes if split else e.total_minutes
            s["overtime"] += split.overtime_minutes if split else 0
            s["total"] += e.total_minutes
            s["days"].add(e.work_date)

        summary = [
            {
                "worker_id": worker_id,
                "worker_name": names.get(worker_id),
                "total_regular_hours": round(s["regular"] / 60, 2),
                "total_overtime_hours": round(s["overtime"] / 60, 2),
                "total_hours": round(s["total"] / 60, 2),
                "days_worked": len(s["days"]),
            }
            for worker_id, s in totals.items()
        ]
        summary.sort(key=lambda x: (x["worker_name"] or "").lower())
        return summary

    def _worker_names(self, worker_ids: Iterable[int]) -> dict[int, str]:
        names: dict[int, str] = {}
        for worker_id in set(worker_ids):
            w = self._workers.get_by_id(worker_id)
            if w:
                names[worker_id] = w.name
        return names
