"""Attendance reconciliation.

Four independent write paths (PIN login, project sign-in/out, timesheet
submission, supervisor toggle / vacation marking) all land here and are
folded into the single AttendanceRecord for (worker, business date).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Optional

from ..common.datetime_utils import SiteClock
from ..core.constants import MAX_VACATION_SPAN_DAYS, SWEEP_CLOSE_TIME
from ..core.enums import AttendanceStatus, EventKind, Role
from ..core.exceptions import (
    AlreadySignedIn,
    DomainError,
    InvalidTimeRange,
    NoActiveSignIn,
    StorageUnavailable,
    ValidationError,
    WorkerNotFound,
)
from ..sessions.model import SignInSession
from ..sessions.repository import SessionRepository
from ..vacations.repository import VacationRepository
from ..workers.repository import WorkerRepository
from .events import (
    LIVE_EVENTS,
    AttendanceEvent,
    LoginObserved,
    ManualToggle,
    SignedIn,
    SignedOut,
    TimesheetSubmitted,
    VacationMarked,
)
from .factory import StatusStrategyFactory
from .model import AttendanceRecord, Location, RosterRow
from .repository import AttendanceRepository, AttendanceUnit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Contribution:
    """What one event offers to the record; merged first-write-wins."""

    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    sign_in_location: Optional[Location] = None
    sign_out_location: Optional[Location] = None


@dataclass
class RepairReport:
    work_date: date
    workers_found: int = 0
    created: int = 0
    updated: int = 0
    failures: dict[int, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "date": self.work_date.isoformat(),
            "workers_found": self.workers_found,
            "attendance_created": self.created,
            "attendance_updated": self.updated,
            "failures": {str(k): v for k, v in self.failures.items()},
        }


@dataclass
class VacationMarkReport:
    records: list[AttendanceRecord] = field(default_factory=list)
    failures: dict[date, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


def _status_is_newer(current: AttendanceRecord, kind: EventKind, occurred_at: datetime) -> bool:
    """Last status wins by event time. An exact replay changes nothing."""

    if current.status_at is None:
        return True
    if occurred_at > current.status_at:
        return True
    return occurred_at == current.status_at and kind != current.status_source


def merge_record(
    current: Optional[AttendanceRecord],
    *,
    worker_id: int,
    work_date: date,
    kind: EventKind,
    occurred_at: datetime,
    status: AttendanceStatus,
    contribution: _Contribution,
    force_status: bool = False,
) -> AttendanceRecord:
    if current is None:
        merged = AttendanceRecord(
            worker_id=worker_id,
            work_date=work_date,
            status=status,
            status_at=occurred_at,
            status_source=kind,
            check_in_time=contribution.check_in_time,
            check_out_time=contribution.check_out_time,
            sign_in_location=Location().fill_from(contribution.sign_in_location),
            sign_out_location=Location().fill_from(contribution.sign_out_location),
        )
    else:
        merged = current
        if force_status or _status_is_newer(current, kind, occurred_at):
            merged = merged.with_changes(status=status, status_at=occurred_at, status_source=kind)
        merged = merged.with_changes(
            check_in_time=current.check_in_time or contribution.check_in_time,
            check_out_time=current.check_out_time or contribution.check_out_time,
            sign_in_location=current.sign_in_location.fill_from(contribution.sign_in_location),
            sign_out_location=current.sign_out_location.fill_from(contribution.sign_out_location),
        )

    if merged.check_in_time and merged.check_out_time and merged.check_out_time < merged.check_in_time:
        raise InvalidTimeRange("Check-out time cannot be earlier than check-in time")
    return merged


class AttendanceService:
    """The reconciler: one atomic unit of work per (worker, business date)."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        workers: WorkerRepository,
        sessions: SessionRepository,
        vacations: VacationRepository,
        *,
        clock: SiteClock,
        strategy_factory: StatusStrategyFactory | None = None,
    ):
        self._attendance = attendance
        self._workers = workers
        self._sessions = sessions
        self._vacations = vacations
        self._clock = clock
        self._factory = strategy_factory or StatusStrategyFactory()

    @property
    def clock(self) -> SiteClock:
        return self._clock

    def resolve_date(self, event: AttendanceEvent) -> date:
        if isinstance(event, LIVE_EVENTS):
            if event.backfill and event.work_date is not None:
                return event.work_date
            return self._clock.business_date(event.occurred_at)
        if event.work_date is None:
            raise ValidationError("Date is required")
        return event.work_date

    def _require_worker(self, worker_id: int) -> None:
        worker = self._workers.get_by_id(int(worker_id))
        if not worker or not worker.is_active:
            raise WorkerNotFound(f"Worker not found: {worker_id}")

    def reconcile(self, event: AttendanceEvent) -> AttendanceRecord:
        self._require_worker(event.worker_id)
        work_date = self.resolve_date(event)
        occurred_at = self._clock.localize(event.occurred_at)
        strategy = self._factory.for_event(event.kind)

        stamp = self.stamp_for(work_date, occurred_at)

        with self._attendance.unit(worker_id=event.worker_id, work_date=work_date) as unit:
            contribution = self._apply_side_effects(unit, event, stamp)
            current = unit.record
            merged = merge_record(
                current,
                worker_id=event.worker_id,
                work_date=work_date,
                kind=event.kind,
                occurred_at=occurred_at,
                status=strategy.decide(current.status if current else None),
                contribution=contribution,
                force_status=self._factory.forces_status(event.kind),
            )
            saved = unit.save(merged)

        logger.info(
            "reconciled %s worker_id=%s date=%s status=%s",
            event.kind.value, event.worker_id, work_date, saved.status.value,
        )
        return saved

    def stamp_for(self, work_date: date, occurred_at: datetime) -> datetime:
        """Check-in/out instant an event contributes to ``work_date``.

        Events recorded on another day (supervisor toggles, backfills) keep
        their wall-clock time but land on the date they are for.
        """

        if self._clock.business_date(occurred_at) == work_date:
            return occurred_at
        return self._clock.at(work_date, occurred_at.time())

    def _apply_side_effects(self, unit: AttendanceUnit, event: AttendanceEvent, stamped_at: datetime) -> _Contribution:
        if isinstance(event, LoginObserved):
            return _Contribution(check_in_time=stamped_at, sign_in_location=event.location)

        if isinstance(event, SignedIn):
            if not event.project or not event.project.strip():
                raise ValidationError("Project is required")
            if unit.get_open_session() is not None:
                logger.info("rejected sign-in: worker_id=%s already signed in on %s", event.worker_id, unit.work_date)
                raise AlreadySignedIn("You are already signed in today. Sign out before signing in again.")
            unit.open_session(project=event.project.strip(), started_at=stamped_at)
            return _Contribution(check_in_time=stamped_at, sign_in_location=event.location)

        if isinstance(event, SignedOut):
            open_session = unit.get_open_session()
            if open_session is None:
                logger.info("rejected sign-out: worker_id=%s has no open session on %s", event.worker_id, unit.work_date)
                raise NoActiveSignIn("No active sign-in found for today.")
            if stamped_at < open_session.started_at:
                raise InvalidTimeRange("Sign-out time cannot be earlier than sign-in time")
            unit.close_open_session(ended_at=stamped_at)
            return _Contribution(check_out_time=stamped_at, sign_out_location=event.location)

        if isinstance(event, TimesheetSubmitted):
            return _Contribution(check_in_time=self._clock.at(unit.work_date, event.start_time))

        if isinstance(event, ManualToggle):
            current = unit.record
            if current is None or current.status != AttendanceStatus.PRESENT:
                return _Contribution(check_in_time=stamped_at)
            return _Contribution()

        if isinstance(event, VacationMarked):
            unit.add_vacation_day(notes=event.notes)
            return _Contribution()

        raise ValidationError(f"Unsupported attendance event: {type(event).__name__}")

    def close_stale_session(self, *, worker_id: int, work_date: date, close_time: time = SWEEP_CLOSE_TIME) -> Optional[SignInSession]:
        """Force-close an open session at the end of its business date.

        Returns None when nothing was open, so running it twice is harmless.
        """

        ended_at = self._clock.at(work_date, close_time)
        with self._attendance.unit(worker_id=worker_id, work_date=work_date) as unit:
            closed = unit.close_open_session(ended_at=ended_at)
            if closed is None:
                return None
            current = unit.record
            strategy = self._factory.for_event(EventKind.SWEEP)
            merged = merge_record(
                current,
                worker_id=worker_id,
                work_date=work_date,
                kind=EventKind.SWEEP,
                occurred_at=ended_at,
                status=strategy.decide(current.status if current else None),
                contribution=_Contribution(check_in_time=closed.started_at, check_out_time=ended_at),
            )
            unit.save(merged)
        return closed

    def repair_from_sign_ins(self, work_date: date) -> RepairReport:
        """Backfill presence for every worker who had a session on ``work_date``."""

        first_start: dict[int, datetime] = {}
        for s in self._sessions.list_for_date(work_date=work_date):
            if s.worker_id not in first_start or s.started_at < first_start[s.worker_id]:
                first_start[s.worker_id] = s.started_at

        report = RepairReport(work_date=work_date, workers_found=len(first_start))
        strategy = self._factory.for_event(EventKind.REPAIR)
        for worker_id, started_at in first_start.items():
            try:
                with self._attendance.unit(worker_id=worker_id, work_date=work_date) as unit:
                    current = unit.record
                    merged = merge_record(
                        current,
                        worker_id=worker_id,
                        work_date=work_date,
                        kind=EventKind.REPAIR,
                        occurred_at=started_at,
                        status=strategy.decide(current.status if current else None),
                        contribution=_Contribution(check_in_time=started_at),
                    )
                    unit.save(merged)
                if current is None:
                    report.created += 1
                else:
                    report.updated += 1
            except DomainError as e:
                logger.warning("repair skipped worker_id=%s date=%s: %s", worker_id, work_date, e)
                report.failures[worker_id] = str(e)

        logger.info(
            "repair for %s: found=%s created=%s updated=%s failed=%s",
            work_date, report.workers_found, report.created, report.updated, len(report.failures),
        )
        return report

    def mark_vacation(
        self,
        worker_id: int,
        *,
        start_date: date,
        end_date: date,
        notes: Optional[str] = None,
    ) -> VacationMarkReport:
        """Mark every day of a period as vacation, one unit of work per day.

        A day that fails is reported and the rest are still marked; repeating
        the call finishes the period.
        """

        if end_date < start_date:
            raise ValidationError("Vacation end date cannot be before start date")
        if (end_date - start_date).days + 1 > MAX_VACATION_SPAN_DAYS:
            raise ValidationError(f"Vacation period cannot exceed {MAX_VACATION_SPAN_DAYS} days")
        self._require_worker(worker_id)

        report = VacationMarkReport()
        now = self._clock.now()
        day = start_date
        while day <= end_date:
            try:
                report.records.append(
                    self.reconcile(VacationMarked(worker_id=worker_id, work_date=day, occurred_at=now, notes=notes))
                )
            except (DomainError, StorageUnavailable) as e:
                logger.warning("vacation not marked for worker_id=%s date=%s: %s", worker_id, day, e)
                report.failures[day] = str(e) or type(e).__name__
            day += timedelta(days=1)
        return report

    def session_history(self, worker_id: int, *, work_date: Optional[date] = None) -> list[SignInSession]:
        self._require_worker(worker_id)
        return list(self._sessions.list_for_worker(worker_id=int(worker_id), work_date=work_date))

    def get_record(self, worker_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_worker_and_date(worker_id, work_date)

    def history(self, worker_id: int, *, start_date: date, end_date: date):
        if end_date < start_date:
            raise ValidationError("End date cannot be before start date")
        return self._attendance.list_for_worker(worker_id, start_date=start_date, end_date=end_date)

    def roster(self, work_date: date) -> list[RosterRow]:
        """Every field worker with their status for the day.

        Workers without a record show vacation when a period covers the date,
        otherwise absent.
        """

        records = {r.worker_id: r for r in self._attendance.list_for_date(work_date)}
        on_vacation = set(self._vacations.worker_ids_on_vacation(work_date))

        rows: list[RosterRow] = []
        for w in self._workers.list_by_role(Role.WORKER):
            r = records.get(w.worker_id)
            if r:
                status = r.status
            elif w.worker_id in on_vacation:
                status = AttendanceStatus.VACATION
            else:
                status = AttendanceStatus.ABSENT
            rows.append(
                RosterRow(
                    worker_id=w.worker_id,
                    worker_name=w.name,
                    work_date=work_date,
                    status=status,
                    check_in_time=r.check_in_time if r else None,
                    check_out_time=r.check_out_time if r else None,
                    sign_in_location=r.sign_in_location if r else Location(),
                    sign_out_location=r.sign_out_location if r else Location(),
                )
            )
        return rows

    def signed_in_workers(self, work_date: date | None = None, *, project: Optional[str] = None) -> list[dict]:
        work_date = work_date or self._clock.today()
        seen: set[int] = set()
        out: list[dict] = []
        for s in self._sessions.list_open(work_date=work_date, project=project):
            if s.worker_id in seen:
                continue
            seen.add(s.worker_id)
            worker = self._workers.get_by_id(s.worker_id)
            out.append(
                {
                    "worker_id": s.worker_id,
                    "name": worker.name if worker else None,
                    "role": worker.role.value if worker else None,
                    "project": s.project,
                    "signed_in_at": s.started_at.isoformat(),
                }
            )
        out.sort(key=lambda x: (x["name"] or "").lower())
        return out
