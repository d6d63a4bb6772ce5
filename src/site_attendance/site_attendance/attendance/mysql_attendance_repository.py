from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime, tzinfo
from typing import Iterator, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, EventKind
from ..core.exceptions import AlreadySignedIn, ConcurrentWriteConflict
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, is_duplicate_key, to_db_datetime
from ..sessions.model import SignInSession
from ..sessions.mysql_session_repository import SESSION_COLUMNS, row_to_session
from .model import AttendanceRecord, Location
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

ATTENDANCE_COLUMNS = """
    attendance_id, worker_id, work_date, status, status_at, status_source,
    check_in_time, check_out_time,
    sign_in_latitude, sign_in_longitude, sign_in_address,
    sign_out_latitude, sign_out_longitude, sign_out_address
"""


def _float_or_none(value) -> Optional[float]:
    return float(value) if value is not None else None


def _row_to_record(r: dict, tz: tzinfo) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        worker_id=int(r["worker_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        status_at=from_db_datetime(r.get("status_at"), tz),
        status_source=EventKind(r["status_source"]) if r.get("status_source") else None,
        check_in_time=from_db_datetime(r.get("check_in_time"), tz),
        check_out_time=from_db_datetime(r.get("check_out_time"), tz),
        sign_in_location=Location(
            latitude=_float_or_none(r.get("sign_in_latitude")),
            longitude=_float_or_none(r.get("sign_in_longitude")),
            address=r.get("sign_in_address"),
        ),
        sign_out_location=Location(
            latitude=_float_or_none(r.get("sign_out_latitude")),
            longitude=_float_or_none(r.get("sign_out_longitude")),
            address=r.get("sign_out_address"),
        ),
    )


class _MySQLAttendanceUnit:
    """Runs inside one transaction that holds the attendance row lock."""

    def __init__(self, cur, *, worker_id: int, work_date: date, tz: tzinfo, record: Optional[AttendanceRecord]):
        self._cur = cur
        self._tz = tz
        self.worker_id = worker_id
        self.work_date = work_date
        self._record = record
        self.saved = False

    @property
    def record(self) -> Optional[AttendanceRecord]:
        return self._record

    def save(self, record: AttendanceRecord) -> AttendanceRecord:
        self._cur.execute(
            """
            UPDATE attendance
            SET status=%s, status_at=%s, status_source=%s,
                check_in_time=%s, check_out_time=%s,
                sign_in_latitude=%s, sign_in_longitude=%s, sign_in_address=%s,
                sign_out_latitude=%s, sign_out_longitude=%s, sign_out_address=%s
            WHERE worker_id=%s AND work_date=%s
            """,
            (
                record.status.value,
                to_db_datetime(record.status_at, self._tz),
                record.status_source.value if record.status_source else None,
                to_db_datetime(record.check_in_time, self._tz),
                to_db_datetime(record.check_out_time, self._tz),
                record.sign_in_location.latitude,
                record.sign_in_location.longitude,
                record.sign_in_location.address,
                record.sign_out_location.latitude,
                record.sign_out_location.longitude,
                record.sign_out_location.address,
                self.worker_id,
                self.work_date,
            ),
        )
        self.saved = True
        self._record = record
        return record

    def get_open_session(self) -> Optional[SignInSession]:
        self._cur.execute(
            f"""
            SELECT {SESSION_COLUMNS}
            FROM sign_ins
            WHERE worker_id=%s AND work_date=%s AND ended_at IS NULL
            ORDER BY started_at DESC
            LIMIT 1
            FOR UPDATE
            """,
            (self.worker_id, self.work_date),
        )
        row = fetchone(self._cur)
        return row_to_session(row, self._tz) if row else None

    def open_session(self, *, project: str, started_at: datetime) -> SignInSession:
        try:
            self._cur.execute(
                """
                INSERT INTO sign_ins(worker_id, work_date, project, started_at)
                VALUES(%s, %s, %s, %s)
                """,
                (self.worker_id, self.work_date, project, to_db_datetime(started_at, self._tz)),
            )
        except mysql.connector.errors.IntegrityError as e:
            if is_duplicate_key(e):
                raise AlreadySignedIn("Worker is already signed in today") from e
            raise
        return SignInSession(
            session_id=int(self._cur.lastrowid),
            worker_id=self.worker_id,
            work_date=self.work_date,
            project=project,
            started_at=started_at,
        )

    def close_open_session(self, *, ended_at: datetime) -> Optional[SignInSession]:
        session = self.get_open_session()
        if not session:
            return None
        self._cur.execute(
            "UPDATE sign_ins SET ended_at=%s WHERE session_id=%s AND ended_at IS NULL",
            (to_db_datetime(ended_at, self._tz), session.session_id),
        )
        return SignInSession(
            session_id=session.session_id,
            worker_id=session.worker_id,
            work_date=session.work_date,
            project=session.project,
            started_at=session.started_at,
            ended_at=ended_at,
        )

    def add_vacation_day(self, *, notes: Optional[str] = None) -> bool:
        self._cur.execute(
            """
            INSERT INTO vacation_periods(worker_id, start_date, end_date, notes)
            SELECT %s, %s, %s, %s FROM DUAL
            WHERE NOT EXISTS (
                SELECT 1 FROM vacation_periods
                WHERE worker_id=%s AND start_date<=%s AND end_date>=%s
            )
            ON DUPLICATE KEY UPDATE vacation_id=vacation_id
            """,
            (
                self.worker_id, self.work_date, self.work_date, notes,
                self.worker_id, self.work_date, self.work_date,
            ),
        )
        return self._cur.rowcount == 1


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, tz: tzinfo):
        self._conn_factory = conn_factory
        self._tz = tz

    @contextmanager
    def unit(self, *, worker_id: int, work_date: date) -> Iterator[_MySQLAttendanceUnit]:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                # Insert-or-noop takes the row lock for (worker, date) even when
                # the row does not exist yet, so concurrent writers serialize here.
                cur.execute(
                    """
                    INSERT INTO attendance(worker_id, work_date, status)
                    VALUES(%s, %s, %s)
                    ON DUPLICATE KEY UPDATE attendance_id=attendance_id
                    """,
                    (int(worker_id), work_date, AttendanceStatus.ABSENT.value),
                )
                cur.execute(
                    f"SELECT {ATTENDANCE_COLUMNS} FROM attendance WHERE worker_id=%s AND work_date=%s FOR UPDATE",
                    (int(worker_id), work_date),
                )
                row = fetchone(cur)
                # Only the placeholder just inserted above has no status source.
                created = not row or row.get("status_source") is None
                record = None if created else _row_to_record(row, self._tz)

                unit = _MySQLAttendanceUnit(cur, worker_id=int(worker_id), work_date=work_date, tz=self._tz, record=record)
                yield unit

                if created and not unit.saved:
                    cur.execute(
                        "DELETE FROM attendance WHERE worker_id=%s AND work_date=%s",
                        (int(worker_id), work_date),
                    )
            except mysql.connector.errors.IntegrityError as e:
                logger.warning("unresolved constraint violation for worker_id=%s date=%s: %s", worker_id, work_date, e)
                raise ConcurrentWriteConflict("Concurrent update detected, please retry") from e

    def get_for_worker_and_date(self, worker_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {ATTENDANCE_COLUMNS} FROM attendance WHERE worker_id=%s AND work_date=%s",
                (int(worker_id), work_date),
            )
            row = fetchone(cur)
            return _row_to_record(row, self._tz) if row else None

    def list_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {ATTENDANCE_COLUMNS} FROM attendance WHERE work_date=%s ORDER BY worker_id",
                (work_date,),
            )
            return [_row_to_record(r, self._tz) for r in fetchall(cur)]

    def list_for_worker(self, worker_id: int, *, start_date: date, end_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {ATTENDANCE_COLUMNS}
                FROM attendance
                WHERE worker_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date DESC
                """,
                (int(worker_id), start_date, end_date),
            )
            return [_row_to_record(r, self._tz) for r in fetchall(cur)]
