from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Iterator, Optional

from werkzeug.security import generate_password_hash

from ..core.enums import Role
from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

SQL_DIR = Path(__file__).resolve().parent / "sql"
SCHEMA_PATH = SQL_DIR / "schema.sql"
SEED_PATH = SQL_DIR / "seed.sql"

_CREATE_DB = re.compile(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$")
_USE_DB = re.compile(r"(?im)^\s*USE\b.*?;\s*$")


def _strip_database_statements(sql: str) -> str:
    # The target database comes from settings, not from the SQL file.
    return _USE_DB.sub("", _CREATE_DB.sub("", sql))


def split_sql_statements(sql: str) -> Iterator[str]:
    """Split a script on ``;`` outside quoted strings and ``--`` line comments."""

    buf: list[str] = []
    quote: Optional[str] = None
    i = 0
    while i < len(sql):
        ch = sql[i]
        if quote:
            buf.append(ch)
            if ch == "\\" and i + 1 < len(sql):
                buf.append(sql[i + 1])
                i += 1
            elif ch == quote:
                quote = None
        elif ch in ("'", '"', "`"):
            quote = ch
            buf.append(ch)
        elif sql.startswith("--", i):
            end = sql.find("\n", i)
            i = len(sql) if end == -1 else end
            continue
        elif ch == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
        else:
            buf.append(ch)
        i += 1

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(db_config: dict, path: Path) -> int:
    sql = _strip_database_statements(Path(path).read_text(encoding="utf-8"))
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    count = 0
    try:
        cur = conn.cursor()
        for stmt in split_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
    return count


def ensure_database_exists(db_config: dict) -> None:
    config = DBConfig.from_dict(db_config)
    conn = DatabaseConnection(config).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path = SCHEMA_PATH) -> None:
    ensure_database_exists(db_config)
    count = _run_script(db_config, Path(schema_path))
    logger.info("applied %s (%s statements) to %s", Path(schema_path).name, count, DBConfig.from_dict(db_config).describe())


def apply_seed_sql(db_config: dict, *, seed_path: str | Path = SEED_PATH) -> None:
    count = _run_script(db_config, Path(seed_path))
    logger.info("applied %s (%s statements)", Path(seed_path).name, count)


def ensure_admin_user(db_config: dict, *, email: str, username: str, password: str) -> bool:
    """Create or refresh the bootstrap ADMIN account. Returns True when created."""

    if not (email and username and password):
        logger.warning("admin seed skipped: ADMIN_EMAIL, ADMIN_USERNAME and ADMIN_PASSWORD are required")
        return False

    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor(dictionary=True)
        password_hash = generate_password_hash(password)
        cur.execute("SELECT user_id FROM users WHERE email=%s OR username=%s LIMIT 1", (email, username))
        existing = cur.fetchone()
        if existing:
            cur.execute(
                """
                UPDATE users
                SET password_hash=%s, role=%s, archived_at=NULL, archived_reason=NULL
                WHERE user_id=%s
                """,
                (password_hash, Role.ADMIN.value, int(existing["user_id"])),
            )
        else:
            cur.execute(
                """
                INSERT INTO users(email, username, password_hash, role, permissions_json, first_name, last_name)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (email, username, password_hash, Role.ADMIN.value, json.dumps([]), "Admin", "User"),
            )
        conn.commit()
    finally:
        conn.close()

    logger.info("admin account %s %s", username, "refreshed" if existing else "created")
    return not existing


def list_tables(db_config: dict) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_dict(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
