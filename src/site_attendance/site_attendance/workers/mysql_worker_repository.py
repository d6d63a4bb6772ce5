from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Worker
from .repository import WorkerRepository


def _row_to_worker(r: dict) -> Worker:
    return Worker(
        worker_id=int(r["worker_id"]),
        name=r["name"],
        role=Role(r["role"]),
        pin_hash=r.get("pin_hash") or "",
        is_active=bool(r.get("is_active", True)),
    )


class MySQLWorkerRepository(WorkerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, worker_id: int) -> Optional[Worker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT worker_id, name, role, pin_hash, is_active
                FROM workers
                WHERE worker_id=%s
                """,
                (int(worker_id),),
            )
            row = fetchone(cur)
            return _row_to_worker(row) if row else None

    def get_by_name(self, name: str) -> Optional[Worker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT worker_id, name, role, pin_hash, is_active
                FROM workers
                WHERE name_key=LOWER(%s)
                """,
                (name.strip(),),
            )
            row = fetchone(cur)
            return _row_to_worker(row) if row else None

    def list_by_role(self, role: Role) -> Sequence[Worker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT worker_id, name, role, pin_hash, is_active
                FROM workers
                WHERE role=%s AND is_active=1
                ORDER BY name
                """,
                (role.value,),
            )
            return [_row_to_worker(r) for r in fetchall(cur)]
