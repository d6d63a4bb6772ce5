from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import VacationPeriod
from .repository import VacationRepository


def _row_to_period(r: dict) -> VacationPeriod:
    return VacationPeriod(
        vacation_id=int(r["vacation_id"]),
        worker_id=int(r["worker_id"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        notes=r.get("notes"),
    )


class MySQLVacationRepository(VacationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, *, worker_id: int, start_date: date, end_date: date, notes: Optional[str] = None) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO vacation_periods(worker_id, start_date, end_date, notes)
                VALUES(%s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE vacation_id=LAST_INSERT_ID(vacation_id)
                """,
                (int(worker_id), start_date, end_date, notes),
            )
            return int(cur.lastrowid)

    def list_for_worker(self, worker_id: int) -> Sequence[VacationPeriod]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT vacation_id, worker_id, start_date, end_date, notes
                FROM vacation_periods
                WHERE worker_id=%s
                ORDER BY start_date DESC
                """,
                (int(worker_id),),
            )
            return [_row_to_period(r) for r in fetchall(cur)]

    def find_covering(self, worker_id: int, day: date) -> Optional[VacationPeriod]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT vacation_id, worker_id, start_date, end_date, notes
                FROM vacation_periods
                WHERE worker_id=%s AND start_date<=%s AND end_date>=%s
                ORDER BY start_date
                LIMIT 1
                """,
                (int(worker_id), day, day),
            )
            row = fetchone(cur)
            return _row_to_period(row) if row else None

    def worker_ids_on_vacation(self, day: date) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT DISTINCT worker_id FROM vacation_periods WHERE start_date<=%s AND end_date>=%s",
                (day, day),
            )
            return [int(r["worker_id"]) for r in fetchall(cur)]
