"""Deploy-time schema migrations.

Schema changes live in numbered files under ``migrations/`` and are applied
once, in order, by ``scripts/migrate.py``. Request handlers never touch DDL.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from werkzeug.security import generate_password_hash

from .connection import DatabaseConnection, DBConfig
from .mysql_base import db_cursor

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent / "migrations"

_MIGRATION_NAME = re.compile(r"^(\d{4})_[a-z0-9_]+\.sql$")


@dataclass(frozen=True)
class Migration:
    version: int
    name: str
    path: Path


def discover_migrations(migrations_dir: str | Path = MIGRATIONS_DIR) -> list[Migration]:
    found: list[Migration] = []
    for path in Path(migrations_dir).iterdir():
        m = _MIGRATION_NAME.match(path.name)
        if not m:
            continue
        found.append(Migration(version=int(m.group(1)), name=path.stem, path=path))

    found.sort(key=lambda mig: mig.version)
    versions = [mig.version for mig in found]
    if len(set(versions)) != len(versions):
        raise RuntimeError(f"Duplicate migration versions in {migrations_dir}")
    return found


def pending_migrations(all_migrations: Sequence[Migration], applied: Iterable[int]) -> list[Migration]:
    done = set(applied)
    return [mig for mig in all_migrations if mig.version not in done]


def _strip_create_db_and_use(sql: str) -> str:
    # Keep migration files compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_line_comments(sql: str) -> str:
    return re.sub(r"(?m)^\s*--.*$", "", sql)


def iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for migration/seed files (handles ';' inside quotes).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
            buf.append(ch)
            continue

        if ch == '"' and not in_single:
            in_double = not in_double
            buf.append(ch)
            continue

        if ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def split_migration(sql: str) -> list[str]:
    return list(iter_sql_statements(_strip_line_comments(_strip_create_db_and_use(sql))))


def ensure_database_exists(db_config: dict) -> None:
    conn_factory = DatabaseConnection(DBConfig.from_dict(db_config))
    conn = conn_factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{conn_factory.config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_migrations(db_config: dict, *, migrations_dir: str | Path = MIGRATIONS_DIR) -> list[str]:
    """Apply every migration not yet recorded in ``schema_migrations``.

    Returns the names of the migrations applied by this call.
    """

    ensure_database_exists(db_config)
    conn_factory = DatabaseConnection(DBConfig.from_dict(db_config))

    with db_cursor(conn_factory) as (_, cur):
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                version INT PRIMARY KEY,
                name VARCHAR(200) NOT NULL,
                applied_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        cur.execute("SELECT version FROM schema_migrations")
        applied = [int(r["version"]) for r in cur.fetchall()]

    applied_now: list[str] = []
    for mig in pending_migrations(discover_migrations(migrations_dir), applied):
        statements = split_migration(mig.path.read_text(encoding="utf-8"))
        # MySQL DDL auto-commits, so each migration is recorded right after it runs.
        with db_cursor(conn_factory) as (_, cur):
            for stmt in statements:
                cur.execute(stmt)
            cur.execute("INSERT INTO schema_migrations(version, name) VALUES(%s, %s)", (mig.version, mig.name))
        logger.info("applied migration %s", mig.name)
        applied_now.append(mig.name)

    return applied_now


def ensure_demo_workers(db_config: dict) -> None:
    conn_factory = DatabaseConnection(DBConfig.from_dict(db_config))

    def upsert_worker(cur, name: str, pin: str, role: str) -> None:
        cur.execute(
            """
            INSERT INTO workers(name, role, pin_hash, is_active)
            VALUES(%s, %s, %s, 1)
            ON DUPLICATE KEY UPDATE role=VALUES(role), pin_hash=VALUES(pin_hash), is_active=1
            """,
            (name, role, generate_password_hash(pin)),
        )

    with db_cursor(conn_factory) as (_, cur):
        upsert_worker(cur, "Admin Supervisor", "1234", "supervisor")
        upsert_worker(cur, "Sergio Araujo", "1234", "foreman")
        for name in ("Ana Silva", "Augusto Duarte", "Cesar Duarte", "Luis Mendoza"):
            upsert_worker(cur, name, "1111", "worker")


def list_tables(db_config: dict) -> list[str]:
    conn_factory = DatabaseConnection(DBConfig.from_dict(db_config))
    with db_cursor(conn_factory, dictionary=False) as (_, cur):
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
