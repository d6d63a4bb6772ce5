from __future__ import annotations

import itertools
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from site_attendance.attendance.model import AttendanceRecord
from site_attendance.common.datetime_utils import SiteClock
from site_attendance.container import assemble
from site_attendance.core.enums import Role, TimesheetStatus
from site_attendance.core.exceptions import AlreadySignedIn, StorageUnavailable
from site_attendance.sessions.model import SignInSession
from site_attendance.timesheets.model import TimesheetEntry
from site_attendance.vacations.model import VacationPeriod
from site_attendance.workers.model import Worker

SITE_TZ = "America/New_York"

ANA = 3
AUGUSTO = 4
CESAR = 5
SERGIO = 2
ADMIN = 1


class FixedClock(SiteClock):
    """Site clock frozen at a settable instant."""

    def __init__(self, current: datetime, tz_name: str = SITE_TZ):
        super().__init__(tz_name)
        self.set(current)

    def set(self, current: datetime) -> None:
        self._current = self.localize(current) if current.tzinfo else current.replace(tzinfo=self.tz)

    def now(self) -> datetime:
        return self._current


@dataclass
class InMemoryWorkers:
    workers_by_id: dict[int, Worker]

    def get_by_id(self, worker_id: int) -> Optional[Worker]:
        return self.workers_by_id.get(worker_id)

    def get_by_name(self, name: str) -> Optional[Worker]:
        key = (name or "").strip().lower()
        for w in self.workers_by_id.values():
            if w.name.lower() == key:
                return w
        return None

    def list_by_role(self, role: Role):
        items = [w for w in self.workers_by_id.values() if w.role == role and w.is_active]
        items.sort(key=lambda w: w.name)
        return items


@dataclass
class InMemoryVacations:
    periods: dict[int, VacationPeriod] = field(default_factory=dict)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    def create(self, *, worker_id: int, start_date: date, end_date: date, notes: Optional[str] = None) -> int:
        for p in self.periods.values():
            if (p.worker_id, p.start_date, p.end_date) == (worker_id, start_date, end_date):
                return p.vacation_id
        vacation_id = next(self._ids)
        self.periods[vacation_id] = VacationPeriod(vacation_id, worker_id, start_date, end_date, notes)
        return vacation_id

    def list_for_worker(self, worker_id: int):
        items = [p for p in self.periods.values() if p.worker_id == worker_id]
        items.sort(key=lambda p: p.start_date, reverse=True)
        return items

    def find_covering(self, worker_id: int, day: date) -> Optional[VacationPeriod]:
        for p in self.periods.values():
            if p.worker_id == worker_id and p.covers(day):
                return p
        return None

    def worker_ids_on_vacation(self, day: date):
        return sorted({p.worker_id for p in self.periods.values() if p.covers(day)})


class _InMemoryUnit:
    """Stages writes; the store applies them only when the unit exits cleanly."""

    def __init__(self, store: "InMemoryAttendance", worker_id: int, work_date: date):
        self._store = store
        self.worker_id = worker_id
        self.work_date = work_date
        self._record = store.records.get((worker_id, work_date))
        self._sessions = [
            s for s in store.sessions.values() if s.worker_id == worker_id and s.work_date == work_date
        ]
        self._vacation: Optional[tuple[Optional[str]]] = None

    @property
    def record(self) -> Optional[AttendanceRecord]:
        return self._record

    def save(self, record: AttendanceRecord) -> AttendanceRecord:
        if record.attendance_id is None:
            record = replace(record, attendance_id=next(self._store.ids))
        self._record = record
        return record

    def get_open_session(self) -> Optional[SignInSession]:
        open_ = [s for s in self._sessions if s.is_open]
        return max(open_, key=lambda s: (s.started_at, s.session_id)) if open_ else None

    def open_session(self, *, project: str, started_at: datetime) -> SignInSession:
        if self.get_open_session() is not None:
            raise AlreadySignedIn("You are already signed in today.")
        s = SignInSession(
            session_id=next(self._store.ids),
            worker_id=self.worker_id,
            work_date=self.work_date,
            project=project,
            started_at=started_at,
        )
        self._sessions.append(s)
        return s

    def close_open_session(self, *, ended_at: datetime) -> Optional[SignInSession]:
        current = self.get_open_session()
        if current is None:
            return None
        closed = replace(current, ended_at=ended_at)
        self._sessions = [closed if s.session_id == current.session_id else s for s in self._sessions]
        return closed

    def add_vacation_day(self, *, notes: Optional[str] = None) -> bool:
        if self._store.vacations.find_covering(self.worker_id, self.work_date):
            return False
        self._vacation = (notes,)
        return True

    def commit(self) -> None:
        if self._record is not None:
            self._store.records[(self.worker_id, self.work_date)] = self._record
        for s in self._sessions:
            self._store.sessions[s.session_id] = s
        if self._vacation is not None:
            self._store.vacations.create(
                worker_id=self.worker_id,
                start_date=self.work_date,
                end_date=self.work_date,
                notes=self._vacation[0],
            )


class InMemoryAttendance:
    """Attendance records plus the session store, locked per (worker, date)."""

    def __init__(self, vacations: InMemoryVacations):
        self.vacations = vacations
        self.records: dict[tuple[int, date], AttendanceRecord] = {}
        self.sessions: dict[int, SignInSession] = {}
        self.ids = itertools.count(1)
        self._locks: dict[tuple[int, date], threading.Lock] = {}
        self._guard = threading.Lock()
        self.fail_for: set[int] = set()

    def _lock_for(self, key: tuple[int, date]) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    @contextmanager
    def unit(self, *, worker_id: int, work_date: date):
        if worker_id in self.fail_for:
            raise StorageUnavailable(f"storage failure for worker {worker_id}")
        with self._lock_for((worker_id, work_date)):
            u = _InMemoryUnit(self, worker_id, work_date)
            yield u
            u.commit()

    def get_for_worker_and_date(self, worker_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return self.records.get((worker_id, work_date))

    def list_for_date(self, work_date: date):
        return [r for (_, d), r in self.records.items() if d == work_date]

    def list_for_worker(self, worker_id: int, *, start_date: date, end_date: date):
        items = [r for (w, d), r in self.records.items() if w == worker_id and start_date <= d <= end_date]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items


@dataclass
class InMemorySessions:
    store: InMemoryAttendance

    def list_open(self, *, work_date: date, project: Optional[str] = None):
        return [
            s for s in self.store.sessions.values()
            if s.work_date == work_date and s.is_open and (project is None or s.project == project)
        ]

    def list_open_through(self, *, end_date: date):
        items = [s for s in self.store.sessions.values() if s.work_date <= end_date and s.is_open]
        items.sort(key=lambda s: (s.work_date, s.worker_id, s.started_at))
        return items

    def list_for_worker(self, *, worker_id: int, work_date: Optional[date] = None):
        return [
            s for s in self.store.sessions.values()
            if s.worker_id == worker_id and (work_date is None or s.work_date == work_date)
        ]

    def list_for_date(self, *, work_date: date):
        return [s for s in self.store.sessions.values() if s.work_date == work_date]


class InMemoryTimesheets:
    def __init__(self):
        self.entries: dict[int, TimesheetEntry] = {}
        self._ids = itertools.count(1)

    def create(self, *, worker_id, work_date, start_time, end_time, break_minutes, total_minutes,
               week_number, submitted_at, project=None, notes=None) -> int:
        timesheet_id = next(self._ids)
        self.entries[timesheet_id] = TimesheetEntry(
            timesheet_id=timesheet_id,
            worker_id=worker_id,
            work_date=work_date,
            start_time=start_time,
            end_time=end_time,
            break_minutes=break_minutes,
            total_minutes=total_minutes,
            week_number=week_number,
            status=TimesheetStatus.PENDING,
            submitted_at=submitted_at,
            project=project,
            notes=notes,
        )
        return timesheet_id

    def get(self, timesheet_id: int) -> Optional[TimesheetEntry]:
        return self.entries.get(timesheet_id)

    def list(self, *, worker_id=None, week_number=None, year=None, start_date=None, end_date=None, limit=None):
        items = [
            e for e in self.entries.values()
            if (worker_id is None or e.worker_id == worker_id)
            and (week_number is None or e.week_number == week_number)
            and (year is None or e.work_date.year == year)
            and (start_date is None or e.work_date >= start_date)
            and (end_date is None or e.work_date <= end_date)
        ]
        items.sort(key=lambda e: (e.work_date, e.submitted_at, e.timesheet_id), reverse=True)
        return items[:limit] if limit is not None else items

    def set_status(self, *, timesheet_id, status, actor, at, expected) -> bool:
        e = self.entries.get(timesheet_id)
        if not e or e.status != expected:
            return False
        if status == TimesheetStatus.APPROVED:
            self.entries[timesheet_id] = replace(e, status=status, approved_by=actor, approved_at=at)
        else:
            self.entries[timesheet_id] = replace(e, status=status, rejected_by=actor)
        return True

    def update_content(self, *, timesheet_id, start_time, end_time, break_minutes, total_minutes,
                       notes, edited_by, edited_at) -> bool:
        e = self.entries.get(timesheet_id)
        if not e:
            return False
        self.entries[timesheet_id] = replace(
            e,
            start_time=start_time,
            end_time=end_time,
            break_minutes=break_minutes,
            total_minutes=total_minutes,
            notes=notes,
            edited_by=edited_by,
            edited_at=edited_at,
        )
        return True

    def delete(self, timesheet_id: int) -> bool:
        return self.entries.pop(timesheet_id, None) is not None


def make_workers() -> dict[int, Worker]:
    crew_pin = generate_password_hash("1111")
    boss_pin = generate_password_hash("1234")
    return {
        ADMIN: Worker(ADMIN, "Admin Supervisor", Role.SUPERVISOR, boss_pin),
        SERGIO: Worker(SERGIO, "Sergio Araujo", Role.FOREMAN, boss_pin),
        ANA: Worker(ANA, "Ana Silva", Role.WORKER, crew_pin),
        AUGUSTO: Worker(AUGUSTO, "Augusto Duarte", Role.WORKER, crew_pin),
        CESAR: Worker(CESAR, "Cesar Duarte", Role.WORKER, crew_pin),
    }


@pytest.fixture
def work_day() -> date:
    # A Monday in June (EDT, UTC-4).
    return date(2026, 6, 1)


@pytest.fixture
def clock(work_day) -> FixedClock:
    return FixedClock(datetime.combine(work_day, time(6, 58)))


@pytest.fixture
def workers() -> InMemoryWorkers:
    return InMemoryWorkers(make_workers())


@pytest.fixture
def vacations() -> InMemoryVacations:
    return InMemoryVacations()


@pytest.fixture
def attendance_store(vacations) -> InMemoryAttendance:
    return InMemoryAttendance(vacations)


@pytest.fixture
def sessions(attendance_store) -> InMemorySessions:
    return InMemorySessions(attendance_store)


@pytest.fixture
def timesheets() -> InMemoryTimesheets:
    return InMemoryTimesheets()


@pytest.fixture
def container(clock, workers, attendance_store, sessions, vacations, timesheets):
    return assemble(
        clock=clock,
        workers_repo=workers,
        attendance_repo=attendance_store,
        sessions_repo=sessions,
        vacations_repo=vacations,
        timesheets_repo=timesheets,
        overtime_threshold_hours=44,
    )


@pytest.fixture
def attendance_service(container):
    return container.attendance_service


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from site_attendance.main import create_app

    return create_app(container)


@pytest.fixture
def client(app):
    return app.test_client()
