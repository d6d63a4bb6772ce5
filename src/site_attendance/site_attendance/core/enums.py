from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Worker role as stored by the identity subsystem."""

    WORKER = "worker"
    FOREMAN = "foreman"
    SUPERVISOR = "supervisor"


class AttendanceStatus(str, Enum):
    """Daily attendance status, one per (worker, business date)."""

    ABSENT = "absent"
    PRESENT = "present"
    VACATION = "vacation"


class EventKind(str, Enum):
    """Write paths that feed the reconciler."""

    LOGIN = "login"
    SIGN_IN = "sign_in"
    SIGN_OUT = "sign_out"
    TIMESHEET = "timesheet"
    MANUAL_TOGGLE = "manual_toggle"
    VACATION = "vacation"
    SWEEP = "sweep"
    REPAIR = "repair"


class TimesheetStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
