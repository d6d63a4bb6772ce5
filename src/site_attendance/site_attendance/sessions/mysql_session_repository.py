from __future__ import annotations

from datetime import date, tzinfo
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_db_datetime
from .model import SignInSession
from .repository import SessionRepository

SESSION_COLUMNS = "session_id, worker_id, work_date, project, started_at, ended_at"


def row_to_session(r: dict, tz: tzinfo) -> SignInSession:
    return SignInSession(
        session_id=int(r["session_id"]),
        worker_id=int(r["worker_id"]),
        work_date=r["work_date"],
        project=r["project"],
        started_at=from_db_datetime(r["started_at"], tz),
        ended_at=from_db_datetime(r.get("ended_at"), tz),
    )


class MySQLSessionRepository(SessionRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, tz: tzinfo):
        self._conn_factory = conn_factory
        self._tz = tz

    def list_open(self, *, work_date: date, project: Optional[str] = None) -> Sequence[SignInSession]:
        clauses = ["work_date=%s", "ended_at IS NULL"]
        params: list[object] = [work_date]
        if project:
            clauses.append("project=%s")
            params.append(project)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {SESSION_COLUMNS}
                FROM sign_ins
                WHERE {" AND ".join(clauses)}
                ORDER BY worker_id, started_at
                """,
                tuple(params),
            )
            return [row_to_session(r, self._tz) for r in fetchall(cur)]

    def list_open_through(self, *, end_date: date) -> Sequence[SignInSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {SESSION_COLUMNS}
                FROM sign_ins
                WHERE work_date<=%s AND ended_at IS NULL
                ORDER BY work_date, worker_id, started_at
                """,
                (end_date,),
            )
            return [row_to_session(r, self._tz) for r in fetchall(cur)]

    def list_for_worker(self, *, worker_id: int, work_date: Optional[date] = None) -> Sequence[SignInSession]:
        clauses = ["worker_id=%s"]
        params: list[object] = [int(worker_id)]
        if work_date is not None:
            clauses.append("work_date=%s")
            params.append(work_date)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {SESSION_COLUMNS}
                FROM sign_ins
                WHERE {" AND ".join(clauses)}
                ORDER BY work_date DESC, started_at DESC
                """,
                tuple(params),
            )
            return [row_to_session(r, self._tz) for r in fetchall(cur)]

    def list_for_date(self, *, work_date: date) -> Sequence[SignInSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {SESSION_COLUMNS}
                FROM sign_ins
                WHERE work_date=%s
                ORDER BY worker_id, started_at
                """,
                (work_date,),
            )
            return [row_to_session(r, self._tz) for r in fetchall(cur)]
