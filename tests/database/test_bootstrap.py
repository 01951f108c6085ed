from __future__ import annotations

from pathlib import Path

import youth_admin
from youth_admin.database.bootstrap import SCHEMA_PATH, SEED_PATH, _strip_database_statements, split_sql_statements


def test_split_ignores_semicolons_in_strings_and_comments():
    sql = """
    -- setup; not a statement
    CREATE TABLE a (id INT);
    INSERT INTO a VALUES ('x;y'), ("it\\'s");
    SELECT 1
    """

    statements = list(split_sql_statements(sql))

    assert statements == [
        "CREATE TABLE a (id INT)",
        "INSERT INTO a VALUES ('x;y'), (\"it\\'s\")",
        "SELECT 1",
    ]


def test_database_statements_are_removed():
    sql = "CREATE DATABASE foo;\nUSE foo;\nCREATE TABLE t (id INT);\n"

    assert list(split_sql_statements(_strip_database_statements(sql))) == ["CREATE TABLE t (id INT)"]


def test_schema_script_defines_every_table():
    statements = list(split_sql_statements(SCHEMA_PATH.read_text(encoding="utf-8")))
    created = [s.split()[5] for s in statements if s.upper().startswith("CREATE TABLE IF NOT EXISTS")]

    assert created == [
        "users",
        "teens",
        "attendance_records",
        "forms",
        "form_fields",
        "form_assignments",
        "form_submissions",
        "audit_logs",
    ]


def test_sql_scripts_ship_inside_the_package():
    package_dir = Path(youth_admin.__file__).resolve().parent

    for path in (SCHEMA_PATH, SEED_PATH):
        assert path.is_file()
        assert package_dir in path.parents
