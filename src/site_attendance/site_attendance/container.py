from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.factory import StatusStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import SiteClock
from .core.constants import (
    DEFAULT_OVERTIME_WEEKLY_THRESHOLD_HOURS,
    DEFAULT_SITE_TIMEZONE,
    DEFAULT_TIMESHEET_LIMIT,
)
from .database.connection import DBConfig, DatabaseConnection
from .sessions.mysql_session_repository import MySQLSessionRepository
from .sessions.repository import SessionRepository
from .sessions.sweep import MidnightSweepService
from .timesheets.mysql_timesheet_repository import MySQLTimesheetRepository
from .timesheets.overtime.weekly_threshold import WeeklyThresholdPolicy
from .timesheets.repository import TimesheetRepository
from .timesheets.service import TimesheetService
from .vacations.mysql_vacation_repository import MySQLVacationRepository
from .vacations.repository import VacationRepository
from .vacations.service import VacationService
from .workers.mysql_worker_repository import MySQLWorkerRepository
from .workers.repository import WorkerRepository
from .workers.service import IdentityService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    clock: SiteClock

    workers_repo: WorkerRepository
    attendance_repo: AttendanceRepository
    sessions_repo: SessionRepository
    vacations_repo: VacationRepository
    timesheets_repo: TimesheetRepository

    identity_service: IdentityService
    attendance_service: AttendanceService
    vacation_service: VacationService
    timesheet_service: TimesheetService
    sweep_service: MidnightSweepService

    timesheet_limit: int = DEFAULT_TIMESHEET_LIMIT


def assemble(
    *,
    clock: SiteClock,
    workers_repo: WorkerRepository,
    attendance_repo: AttendanceRepository,
    sessions_repo: SessionRepository,
    vacations_repo: VacationRepository,
    timesheets_repo: TimesheetRepository,
    overtime_threshold_hours: float = DEFAULT_OVERTIME_WEEKLY_THRESHOLD_HOURS,
    timesheet_limit: int = DEFAULT_TIMESHEET_LIMIT,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services on top of whichever repositories are given (MySQL or in-memory)."""

    identity_service = IdentityService(workers_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        workers_repo,
        sessions_repo,
        vacations_repo,
        clock=clock,
        strategy_factory=StatusStrategyFactory(),
    )
    vacation_service = VacationService(vacations_repo, workers_repo)
    timesheet_service = TimesheetService(
        timesheets_repo,
        workers_repo,
        attendance_service,
        policy=WeeklyThresholdPolicy(threshold_hours=overtime_threshold_hours),
    )
    sweep_service = MidnightSweepService(sessions_repo, attendance_service, clock=clock)

    return Container(
        conn=conn,
        clock=clock,
        workers_repo=workers_repo,
        attendance_repo=attendance_repo,
        sessions_repo=sessions_repo,
        vacations_repo=vacations_repo,
        timesheets_repo=timesheets_repo,
        identity_service=identity_service,
        attendance_service=attendance_service,
        vacation_service=vacation_service,
        timesheet_service=timesheet_service,
        sweep_service=sweep_service,
        timesheet_limit=timesheet_limit,
    )


def build_container(
    *,
    db_config: dict,
    site_timezone: str = DEFAULT_SITE_TIMEZONE,
    overtime_threshold_hours: float = DEFAULT_OVERTIME_WEEKLY_THRESHOLD_HOURS,
    timesheet_limit: int = DEFAULT_TIMESHEET_LIMIT,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    clock = SiteClock(site_timezone)

    return assemble(
        clock=clock,
        workers_repo=MySQLWorkerRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn, tz=clock.tz),
        sessions_repo=MySQLSessionRepository(conn, tz=clock.tz),
        vacations_repo=MySQLVacationRepository(conn),
        timesheets_repo=MySQLTimesheetRepository(conn, tz=clock.tz),
        overtime_threshold_hours=overtime_threshold_hours,
        timesheet_limit=timesheet_limit,
        conn=conn,
    )
