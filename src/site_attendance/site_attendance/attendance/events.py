"""Events produced by the four write paths (login, sign-in/out, timesheet,
manual toggle / vacation marking).

Live events (login, sign-in, sign-out) get their business date from the site
clock. A caller-supplied ``work_date`` is honoured only when ``backfill`` is set.
Toggle, vacation and timesheet events are inherently dated.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import ClassVar, Optional, Union

from ..core.enums import EventKind
from .model import Location


@dataclass(frozen=True)
class LoginObserved:
    kind: ClassVar[EventKind] = EventKind.LOGIN

    worker_id: int
    occurred_at: datetime
    location: Optional[Location] = None
    work_date: Optional[date] = None
    backfill: bool = False


@dataclass(frozen=True)
class SignedIn:
    kind: ClassVar[EventKind] = EventKind.SIGN_IN

    worker_id: int
    project: str
    occurred_at: datetime
    location: Optional[Location] = None
    work_date: Optional[date] = None
    backfill: bool = False


@dataclass(frozen=True)
class SignedOut:
    kind: ClassVar[EventKind] = EventKind.SIGN_OUT

    worker_id: int
    occurred_at: datetime
    location: Optional[Location] = None
    work_date: Optional[date] = None
    backfill: bool = False


@dataclass(frozen=True)
class TimesheetSubmitted:
    kind: ClassVar[EventKind] = EventKind.TIMESHEET

    worker_id: int
    work_date: date
    start_time: time
    occurred_at: datetime


@dataclass(frozen=True)
class ManualToggle:
    kind: ClassVar[EventKind] = EventKind.MANUAL_TOGGLE

    worker_id: int
    work_date: date
    occurred_at: datetime


@dataclass(frozen=True)
class VacationMarked:
    kind: ClassVar[EventKind] = EventKind.VACATION

    worker_id: int
    work_date: date
    occurred_at: datetime
    notes: Optional[str] = None


AttendanceEvent = Union[LoginObserved, SignedIn, SignedOut, TimesheetSubmitted, ManualToggle, VacationMarked]

LIVE_EVENTS = (LoginObserved, SignedIn, SignedOut)
