from __future__ import annotations

from datetime import date, datetime
from typing import ContextManager, Optional, Protocol, Sequence

from ..sessions.model import SignInSession
from .model import AttendanceRecord


class AttendanceUnit(Protocol):
    """Everything one reconciliation may touch for a single (worker, date).

    Implementations hold an exclusive lock on the key for the lifetime of the
    unit, and apply all writes atomically when the unit exits cleanly.
    """

    worker_id: int
    work_date: date

    @property
    def record(self) -> Optional[AttendanceRecord]:
        """The record as read under the lock; None if none exists yet."""

        raise NotImplementedError

    def save(self, record: AttendanceRecord) -> AttendanceRecord:
        raise NotImplementedError

    def get_open_session(self) -> Optional[SignInSession]:
        raise NotImplementedError

    def open_session(self, *, project: str, started_at: datetime) -> SignInSession:
        """Raises AlreadySignedIn if the store already holds an open session."""

        raise NotImplementedError

    def close_open_session(self, *, ended_at: datetime) -> Optional[SignInSession]:
        """Close the most recent open session. None if there was none."""

        raise NotImplementedError

    def add_vacation_day(self, *, notes: Optional[str] = None) -> bool:
        """Insert a single-day vacation period unless one already covers the date."""

        raise NotImplementedError


class AttendanceRepository(Protocol):
    def unit(self, *, worker_id: int, work_date: date) -> ContextManager[AttendanceUnit]:
        raise NotImplementedError

    def get_for_worker_and_date(self, worker_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_worker(self, worker_id: int, *, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
