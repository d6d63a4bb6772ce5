from datetime import date, datetime
from zoneinfo import ZoneInfo

import mysql.connector
import pytest
from mysql.connector import errorcode

from site_attendance.attendance.model import AttendanceRecord
from site_attendance.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from site_attendance.core.enums import AttendanceStatus, EventKind
from site_attendance.core.exceptions import AlreadySignedIn, ConcurrentWriteConflict

NY = ZoneInfo("America/New_York")
DAY = date(2026, 6, 1)


def _placeholder_row():
    return {"attendance_id": 7, "worker_id": 3, "work_date": DAY, "status": "absent", "status_source": None}


def _saved_row():
    return {
        "attendance_id": 7,
        "worker_id": 3,
        "work_date": DAY,
        "status": "present",
        "status_at": datetime(2026, 6, 1, 6, 58),
        "status_source": "login",
        "check_in_time": datetime(2026, 6, 1, 6, 58),
        "check_out_time": None,
    }


class ScriptedCursor:
    """Records statements; raises for the first statement matching a fragment."""

    def __init__(self, rows=(), raise_on=None, rowcount=1):
        self.executed = []
        self.rows = list(rows)
        self.raise_on = dict(raise_on or {})
        self.rowcount = rowcount
        self.lastrowid = 41

    def execute(self, sql, params=None):
        flat = " ".join(sql.split())
        self.executed.append((flat, params))
        for fragment, err in list(self.raise_on.items()):
            if fragment in flat:
                del self.raise_on[fragment]
                raise err

    def fetchone(self):
        return self.rows.pop(0) if self.rows else None

    def fetchall(self):
        rows, self.rows = self.rows, []
        return rows

    def close(self):
        pass

    def statements(self):
        return [sql for sql, _ in self.executed]


class FakeConn:
    def __init__(self, cur):
        self.cur = cur
        self.committed = False
        self.rolled_back = False

    def cursor(self, dictionary=True):
        return self.cur

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        pass


class FakeFactory:
    def __init__(self, conn):
        self.conn = conn

    def connect(self):
        return self.conn


def _repo(cur):
    conn = FakeConn(cur)
    return MySQLAttendanceRepository(FakeFactory(conn), tz=NY), conn


def test_unit_locks_row_before_reading():
    cur = ScriptedCursor(rows=[_saved_row()])
    repo, _ = _repo(cur)

    with repo.unit(worker_id=3, work_date=DAY) as unit:
        assert unit.record.status == AttendanceStatus.PRESENT
        assert unit.record.status_source == EventKind.LOGIN
        assert unit.record.check_in_time == datetime(2026, 6, 1, 6, 58, tzinfo=NY)

    sql = cur.statements()
    assert sql[0].startswith("INSERT INTO attendance")
    assert "ON DUPLICATE KEY UPDATE" in sql[0]
    assert sql[1].endswith("FOR UPDATE")


def test_unsaved_placeholder_is_deleted():
    cur = ScriptedCursor(rows=[_placeholder_row()])
    repo, conn = _repo(cur)

    with repo.unit(worker_id=3, work_date=DAY) as unit:
        assert unit.record is None

    assert cur.statements()[-1].startswith("DELETE FROM attendance")
    assert conn.committed


def test_saved_placeholder_is_kept():
    cur = ScriptedCursor(rows=[_placeholder_row()])
    repo, _ = _repo(cur)

    with repo.unit(worker_id=3, work_date=DAY) as unit:
        unit.save(
            AttendanceRecord(
                worker_id=3,
                work_date=DAY,
                status=AttendanceStatus.PRESENT,
                status_at=datetime(2026, 6, 1, 6, 58, tzinfo=NY),
                status_source=EventKind.LOGIN,
            )
        )

    sql = cur.statements()
    assert sql[-1].startswith("UPDATE attendance")
    assert not any(s.startswith("DELETE") for s in sql)


def test_existing_record_left_unsaved_is_not_deleted():
    cur = ScriptedCursor(rows=[_saved_row()])
    repo, _ = _repo(cur)

    with repo.unit(worker_id=3, work_date=DAY):
        pass

    assert not any(s.startswith("DELETE") for s in cur.statements())


def test_duplicate_open_marker_is_already_signed_in():
    dup = mysql.connector.errors.IntegrityError(msg="Duplicate entry for open_marker", errno=errorcode.ER_DUP_ENTRY)
    cur = ScriptedCursor(rows=[_placeholder_row()], raise_on={"INSERT INTO sign_ins": dup})
    repo, conn = _repo(cur)

    with pytest.raises(AlreadySignedIn):
        with repo.unit(worker_id=3, work_date=DAY) as unit:
            unit.open_session(project="Tower B", started_at=datetime(2026, 6, 1, 7, 2, tzinfo=NY))

    assert conn.rolled_back and not conn.committed


def test_open_session_returns_new_row():
    cur = ScriptedCursor(rows=[_placeholder_row()])
    repo, _ = _repo(cur)

    with repo.unit(worker_id=3, work_date=DAY) as unit:
        session = unit.open_session(project="Tower B", started_at=datetime(2026, 6, 1, 7, 2, tzinfo=NY))

    assert session.session_id == 41
    insert_params = [p for s, p in cur.executed if s.startswith("INSERT INTO sign_ins")][0]
    assert insert_params == (3, DAY, "Tower B", datetime(2026, 6, 1, 7, 2))


def test_foreign_key_failure_on_placeholder_is_concurrent_write_conflict():
    fk = mysql.connector.errors.IntegrityError(msg="FK fails", errno=errorcode.ER_NO_REFERENCED_ROW_2)
    cur = ScriptedCursor(raise_on={"INSERT INTO attendance": fk})
    repo, conn = _repo(cur)

    with pytest.raises(ConcurrentWriteConflict):
        with repo.unit(worker_id=3, work_date=DAY):
            pass

    assert conn.rolled_back


def test_other_integrity_error_inside_unit_is_concurrent_write_conflict():
    fk = mysql.connector.errors.IntegrityError(msg="FK fails", errno=errorcode.ER_NO_REFERENCED_ROW_2)
    cur = ScriptedCursor(rows=[_placeholder_row()], raise_on={"INSERT INTO sign_ins": fk})
    repo, conn = _repo(cur)

    with pytest.raises(ConcurrentWriteConflict):
        with repo.unit(worker_id=3, work_date=DAY) as unit:
            unit.open_session(project="Tower B", started_at=datetime(2026, 6, 1, 7, 2, tzinfo=NY))

    assert conn.rolled_back


@pytest.mark.parametrize("rowcount,expected", [(1, True), (0, False)])
def test_vacation_day_is_guarded_by_covering_period(rowcount, expected):
    cur = ScriptedCursor(rows=[_placeholder_row()], rowcount=rowcount)
    repo, _ = _repo(cur)

    with repo.unit(worker_id=3, work_date=DAY) as unit:
        assert unit.add_vacation_day(notes="family") is expected

    sql, params = [(s, p) for s, p in cur.executed if s.startswith("INSERT INTO vacation_periods")][0]
    assert "WHERE NOT EXISTS" in sql
    assert "start_date<=%s AND end_date>=%s" in sql
    assert params == (3, DAY, DAY, "family", 3, DAY, DAY)
