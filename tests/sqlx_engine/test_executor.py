from __future__ import annotations

import pytest

from sqlx_cli.shared.exceptions import QueryError
from sqlx_cli.sqlx_engine import engine
from sqlx_cli.sqlx_engine.executor import execute, requires_schema_refresh, split_statements
from sqlx_cli.sqlx_engine.types import QueryResult


@pytest.fixture()
def handle(people_db: bytes):
    handle = engine.open_database(people_db)
    yield handle
    engine.close(handle)


def test_select_returns_columns_and_rows(handle) -> None:
    result = execute(handle, "SELECT id, name, age FROM people ORDER BY id")

    assert result.columns == ("id", "name", "age")
    assert result.rows == [(1, "Ada", 36), (2, "Grace", 45), (3, "Linus", None)]


def test_duplicate_column_names_are_kept_in_order(handle) -> None:
    result = execute(
        handle, "SELECT a.name, b.name FROM people a JOIN people b ON a.id = b.id ORDER BY a.id LIMIT 1"
    )

    assert result.columns == ("name", "name")
    assert result.rows == [("Ada", "Ada")]


def test_cells_keep_their_storage_class(handle) -> None:
    result = execute(handle, "SELECT 1, 2.5, 'x', x'00ff', NULL")

    assert result.rows == [(1, 2.5, "x", b"\x00\xff", None)]


def test_ddl_returns_empty_result(handle) -> None:
    result = execute(handle, "CREATE TABLE t (x INTEGER)")

    assert result == QueryResult()
    assert result.is_empty


def test_zero_row_select_keeps_columns(handle) -> None:
    result = execute(handle, "SELECT name FROM people WHERE id < 0")

    assert result.columns == ("name",)
    assert list(result.rows) == []
    assert not result.is_empty


def test_first_result_set_wins(handle) -> None:
    result = execute(
        handle,
        "INSERT INTO people (name) VALUES ('Barbara');"
        "SELECT COUNT(*) AS total FROM people;"
        "SELECT name FROM people;",
    )

    assert result.columns == ("total",)
    assert result.rows == [(4,)]


def test_all_statements_run(handle) -> None:
    execute(handle, "SELECT 1; INSERT INTO people (name) VALUES ('Barbara'); DELETE FROM people WHERE id = 1")

    names = execute(handle, "SELECT name FROM people ORDER BY id").rows
    assert names == [("Grace",), ("Linus",), ("Barbara",)]


def test_syntax_error_raises_with_engine_message(handle) -> None:
    with pytest.raises(QueryError) as excinfo:
        execute(handle, "SELEKT 1")

    assert "syntax error" in excinfo.value.engine_message

    # The handle stays usable after a failure.
    assert execute(handle, "SELECT 1").rows == [(1,)]


def test_failure_stops_remaining_statements(handle) -> None:
    with pytest.raises(QueryError):
        execute(
            handle,
            "INSERT INTO people (name) VALUES ('first');"
            "INSERT INTO missing VALUES (1);"
            "INSERT INTO people (name) VALUES ('never');",
        )

    names = [row[0] for row in execute(handle, "SELECT name FROM people").rows]
    assert "first" in names
    assert "never" not in names


def test_constraint_violation_is_query_error(handle) -> None:
    with pytest.raises(QueryError) as excinfo:
        execute(handle, "INSERT INTO people (age) VALUES (1)")

    assert "NOT NULL" in excinfo.value.engine_message


def test_empty_text_returns_empty_result(handle) -> None:
    assert execute(handle, "  ;; -- nothing here\n").is_empty


def test_split_keeps_semicolons_inside_literals() -> None:
    statements = list(split_statements("SELECT 'a;b'; SELECT \"c;d\" FROM t; SELECT 3"))

    assert statements == ["SELECT 'a;b';", 'SELECT "c;d" FROM t;', "SELECT 3"]


def test_split_keeps_trigger_bodies_together() -> None:
    sql = (
        "CREATE TRIGGER bump AFTER INSERT ON people BEGIN "
        "UPDATE people SET age = 0 WHERE id = new.id; END;"
        "SELECT 1;"
    )

    statements = list(split_statements(sql))

    assert len(statements) == 2
    assert statements[0].endswith("END;")


def test_split_drops_comment_only_fragments() -> None:
    assert list(split_statements("SELECT 1; -- trailing comment")) == ["SELECT 1;"]
    assert list(split_statements("/* block */ ;")) == []


@pytest.mark.parametrize(
    ("sql", "expected"),
    [
        ("CREATE TABLE t (x)", True),
        ("drop table t", True),
        ("ALTER TABLE t ADD COLUMN y", True),
        ("SELECT created_at FROM t", True),
        ("SELECT * FROM people", False),
        ("INSERT INTO people (name) VALUES ('x')", False),
    ],
)
def test_requires_schema_refresh(sql: str, expected: bool) -> None:
    assert requires_schema_refresh(sql) is expected
