from __future__ import annotations

import pytest

from sqlx_cli.shared.exceptions import (
    CorruptDatabaseError,
    InvalidHandleError,
    NoDatabaseLoadedError,
    QueryError,
)
from sqlx_cli.sqlx_engine.session import Session, quote_literal


@pytest.fixture()
def session(people_db: bytes):
    session = Session()
    session.load(people_db, name="people.db")
    yield session
    session.close()


def test_operations_require_a_loaded_database() -> None:
    session = Session()

    assert not session.loaded
    with pytest.raises(NoDatabaseLoadedError):
        session.run("SELECT 1")
    with pytest.raises(NoDatabaseLoadedError):
        session.export_database()
    assert session.export_csv() == ""


def test_load_populates_schema_and_metadata(session: Session, people_db: bytes) -> None:
    assert session.loaded
    assert session.name == "people.db"
    assert session.size == len(people_db)
    assert session.schema is not None
    assert session.schema.table_names == ("people", "order items")


def test_loading_again_closes_the_previous_handle(session: Session, make_database) -> None:
    previous = session.handle

    session.load(make_database("CREATE TABLE other (x);"), name="other.db")

    assert previous is not None and previous.closed
    with pytest.raises(InvalidHandleError):
        previous.connection
    assert session.schema.table_names == ("other",)
    assert session.last_result is None


def test_failed_load_leaves_nothing_loaded(session: Session) -> None:
    previous = session.handle

    with pytest.raises(CorruptDatabaseError):
        session.load(b"not a database", name="bad.db")

    assert previous.closed
    assert not session.loaded
    assert session.schema is None


def test_create_table_refreshes_schema(session: Session) -> None:
    session.run("CREATE TABLE tags (label TEXT)")

    assert "tags" in session.schema.table_names


def test_dml_updates_row_counts_only_on_refresh(session: Session) -> None:
    session.run("INSERT INTO people (name) VALUES ('Barbara')")

    assert session.schema.table("people").row_count == 3
    assert session.refresh_schema().table("people").row_count == 4


def test_failed_query_keeps_last_result(session: Session) -> None:
    first = session.run("SELECT name FROM people ORDER BY id LIMIT 1")

    with pytest.raises(QueryError):
        session.run("SELEKT nonsense")

    assert session.last_result is first
    assert session.export_csv() == '"name"\n"Ada"'


def test_run_records_elapsed_time(session: Session) -> None:
    assert session.last_elapsed is None

    session.run("SELECT COUNT(*) FROM people")
    elapsed = session.last_elapsed

    assert elapsed is not None and elapsed >= 0
    with pytest.raises(QueryError):
        session.run("SELEKT 1")
    assert session.last_elapsed == elapsed

    session.close()
    assert session.last_elapsed is None


def test_failed_text_still_refreshes_after_partial_ddl(session: Session) -> None:
    with pytest.raises(QueryError):
        session.run("CREATE TABLE partial (x); SELECT * FROM missing")

    assert "partial" in session.schema.table_names


def test_browse_uses_limit(session: Session) -> None:
    result = session.browse("people", limit=2)

    assert result.columns == ("id", "name", "age", "nickname")
    assert len(result.rows) == 2


def test_browse_quotes_table_names(session: Session) -> None:
    result = session.browse("order items")

    assert result.columns == ("select", "qty")
    assert result.rows == [("widget", 2.5)]


def test_insert_record_omits_auto_key_and_empty_values(session: Session) -> None:
    session.insert_record("people", {"id": None, "name": "Barbara", "age": "", "nickname": ""})

    row = session.run("SELECT id, name, age, nickname FROM people WHERE name = 'Barbara'").rows[0]
    assert row == (4, "Barbara", None, "none")
    assert session.schema.table("people").row_count == 4


def test_insert_record_with_quotes_in_values(session: Session) -> None:
    session.insert_record("order items", {"select": "O'Brien", "qty": 3})

    rows = session.run('SELECT "select", qty FROM "order items" ORDER BY rowid').rows
    assert rows[-1] == ("O'Brien", 3.0)


def test_insert_record_with_defaults_only(session: Session) -> None:
    session.run("CREATE TABLE flags (id INTEGER PRIMARY KEY, enabled INTEGER DEFAULT 1)")

    session.insert_record("flags", {})

    assert session.run("SELECT id, enabled FROM flags").rows == [(1, 1)]


def test_insert_record_unknown_table(session: Session) -> None:
    with pytest.raises(QueryError) as excinfo:
        session.insert_record("ghosts", {"name": "x"})

    assert excinfo.value.engine_message == "no such table: ghosts"


def test_insert_record_reports_constraint_failure(session: Session) -> None:
    with pytest.raises(QueryError) as excinfo:
        session.insert_record("people", {"age": 3})

    assert "NOT NULL" in excinfo.value.engine_message


def test_export_database_round_trips(session: Session) -> None:
    session.run("INSERT INTO people (name) VALUES ('Barbara')")
    image = session.export_database()

    with Session() as other:
        schema = other.load(image)
        assert schema.table("people").row_count == 4


def test_close_releases_handle(people_db: bytes) -> None:
    session = Session()
    session.load(people_db)
    handle = session.handle

    session.close()

    assert handle.closed
    assert not session.loaded
    session.close()


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, "NULL"),
        (7, "7"),
        (True, "1"),
        (2.5, "2.5"),
        ("it's", "'it''s'"),
        (b"\x00\x10", "X'0010'"),
    ],
)
def test_quote_literal(value, expected: str) -> None:
    assert quote_literal(value) == expected
