from __future__ import annotations

from datetime import date, datetime, time, tzinfo
from typing import Optional, Sequence

from ..core.enums import TimesheetStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    from_db_datetime,
    normalize_mysql_time,
    to_db_datetime,
)
from .model import TimesheetEntry
from .repository import TimesheetRepository

TIMESHEET_COLUMNS = """
    timesheet_id, worker_id, work_date, project, start_time, end_time, break_minutes,
    total_minutes, week_number, status, notes, submitted_at,
    approved_by, approved_at, rejected_by, edited_by, edited_at
"""


class MySQLTimesheetRepository(TimesheetRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, tz: tzinfo):
        self._conn_factory = conn_factory
        self._tz = tz

    def _row_to_entry(self, r: dict) -> TimesheetEntry:
        return TimesheetEntry(
            timesheet_id=int(r["timesheet_id"]),
            worker_id=int(r["worker_id"]),
            work_date=r["work_date"],
            project=r.get("project"),
            start_time=normalize_mysql_time(r["start_time"]),
            end_time=normalize_mysql_time(r["end_time"]),
            break_minutes=int(r.get("break_minutes") or 0),
            total_minutes=int(r["total_minutes"]),
            week_number=int(r["week_number"]),
            status=TimesheetStatus(r["status"]),
            notes=r.get("notes"),
            submitted_at=from_db_datetime(r["submitted_at"], self._tz),
            approved_by=r.get("approved_by"),
            approved_at=from_db_datetime(r.get("approved_at"), self._tz),
            rejected_by=r.get("rejected_by"),
            edited_by=r.get("edited_by"),
            edited_at=from_db_datetime(r.get("edited_at"), self._tz),
        )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO timesheets(
                    worker_id, work_date, project, start_time, end_time, break_minutes,
                    total_minutes, week_number, status, notes, submitted_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(worker_id), work_date, project, start_time, end_time, int(break_minutes),
                    int(total_minutes), int(week_number), TimesheetStatus.PENDING.value, notes,
                    to_db_datetime(submitted_at, self._tz),
                ),
            )
            return int(cur.lastrowid)

    def get(self, timesheet_id: int) -> Optional[TimesheetEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {TIMESHEET_COLUMNS} FROM timesheets WHERE timesheet_id=%s", (int(timesheet_id),))
            row = fetchone(cur)
            return self._row_to_entry(row) if row else None

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
        clauses = ["1=1"]
        params: list[object] = []

        if worker_id is not None:
            clauses.append("worker_id=%s")
            params.append(int(worker_id))
        if week_number is not None:
            clauses.append("week_number=%s")
            params.append(int(week_number))
        if year is not None:
            clauses.append("YEAR(work_date)=%s")
            params.append(int(year))
        if start_date is not None:
            clauses.append("work_date>=%s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("work_date<=%s")
            params.append(end_date)

        sql = f"""
            SELECT {TIMESHEET_COLUMNS}
            FROM timesheets
            WHERE {" AND ".join(clauses)}
            ORDER BY work_date DESC, submitted_at DESC, timesheet_id DESC
        """
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [self._row_to_entry(r) for r in fetchall(cur)]

    def set_status(
        self,
        *,
        timesheet_id: int,
        status: TimesheetStatus,
        actor: str,
        at: datetime,
        expected: TimesheetStatus,
    ) -> bool:
        if status == TimesheetStatus.APPROVED:
            assignments = "status=%s, approved_by=%s, approved_at=%s"
            params: tuple = (status.value, actor, to_db_datetime(at, self._tz))
        else:
            assignments = "status=%s, rejected_by=%s"
            params = (status.value, actor)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE timesheets SET {assignments} WHERE timesheet_id=%s AND status=%s",
                params + (int(timesheet_id), expected.value),
            )
            return cur.rowcount > 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE timesheets
                SET start_time=%s, end_time=%s, break_minutes=%s, total_minutes=%s,
                    notes=%s, edited_by=%s, edited_at=%s
                WHERE timesheet_id=%s
                """,
                (
                    start_time, end_time, int(break_minutes), int(total_minutes),
                    notes, edited_by, to_db_datetime(edited_at, self._tz), int(timesheet_id),
                ),
            )
            return cur.rowcount > 0

    def delete(self, timesheet_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM timesheets WHERE timesheet_id=%s", (int(timesheet_id),))
            return cur.rowcount > 0
