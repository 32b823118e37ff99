from __future__ import annotations

import io
from pathlib import Path

import pytest

from sqlx_cli.sqlx_engine.session import Session
from sqlx_cli.sqlx_query.shell import HELP_TEXT, Shell, parse_assignments


@pytest.fixture()
def session(people_db: bytes):
    session = Session()
    session.load(people_db, name="people.db")
    yield session
    session.close()


@pytest.fixture()
def run_shell(session: Session, stub_logger):
    """Feed a script through a Shell; return (stdout text, logger)."""

    def _run(script: str):
        stdout = io.StringIO()
        shell = Shell(
            session, logger=stub_logger, stdin=io.StringIO(script), stdout=stdout, prompt=lambda text: None
        )
        shell.run()
        return stdout.getvalue(), stub_logger

    return _run


def test_shell_runs_multiline_sql(session: Session, run_shell) -> None:
    output, _ = run_shell("SELECT name\nFROM people\nWHERE id = 2;\n")

    assert "Grace" in output
    assert "Ada" not in output


def test_shell_reports_row_count_and_time(session: Session, run_shell) -> None:
    _, logger = run_shell("SELECT name FROM people;\n")

    infos = [message for level, message in logger.messages if level == "info"]
    assert any(message.startswith("3 rows in ") and message.endswith("s") for message in infos)


def test_shell_runs_unterminated_sql_at_eof(session: Session, run_shell) -> None:
    output, _ = run_shell("SELECT 'tail' AS t")

    assert "tail" in output


def test_shell_reports_errors_and_continues(session: Session, run_shell) -> None:
    output, logger = run_shell("SELEKT 1;\nSELECT 'after' AS a;\n")

    errors = [message for level, message in logger.messages if level == "error"]
    assert len(errors) == 1
    assert "syntax error" in errors[0]
    assert "after" in output


def test_shell_tables_command(session: Session, run_shell) -> None:
    output, _ = run_shell(".tables\n")

    assert output.splitlines() == ["people\t3", "order items\t1"]


def test_shell_announces_schema_refresh(session: Session, run_shell) -> None:
    _, logger = run_shell("CREATE TABLE tags (label TEXT);\n")

    assert ("info", "Schema refreshed (3 tables).") in logger.messages


def test_shell_insert_and_browse(session: Session, run_shell) -> None:
    output, logger = run_shell(".insert people name=Barbara age=\n.browse people 10\n")

    assert any(level == "success" for level, _ in logger.messages)
    assert "Barbara" in output
    assert session.schema.table("people").row_count == 4


def test_shell_insert_with_quoted_table(session: Session, run_shell) -> None:
    _, logger = run_shell('.insert "order items" select=bolt qty=4\n')

    assert not [message for level, message in logger.messages if level == "error"]
    assert session.run('SELECT COUNT(*) FROM "order items"').rows == [(2,)]


def test_shell_insert_unknown_table(session: Session, run_shell) -> None:
    _, logger = run_shell(".insert ghosts name=x\n")

    assert ("error", "no such table: ghosts") in logger.messages


def test_shell_csv_writes_last_result(session: Session, run_shell, tmp_path: Path) -> None:
    target = tmp_path / "out.csv"

    run_shell(f"SELECT name FROM people WHERE id = 1;\n.csv {target}\n")

    assert target.read_text(encoding="utf-8") == '"name"\n"Ada"'


def test_shell_csv_without_result_warns(session: Session, run_shell, tmp_path: Path) -> None:
    _, logger = run_shell(f".csv {tmp_path / 'out.csv'}\n")

    assert ("warning", "No query result to export yet.") in logger.messages
    assert not (tmp_path / "out.csv").exists()


def test_shell_save_writes_image(session: Session, run_shell, tmp_path: Path) -> None:
    target = tmp_path / "saved.db"

    run_shell(f"DELETE FROM people;\n.save {target}\n")

    with Session() as reloaded:
        schema = reloaded.load(target.read_bytes())
        assert schema.table("people").row_count == 0


def test_shell_quit_stops_reading(session: Session, run_shell) -> None:
    output, _ = run_shell(".quit\nSELECT 'unreached' AS u;\n")

    assert "unreached" not in output


def test_shell_help_and_unknown_command(session: Session, run_shell) -> None:
    output, logger = run_shell(".help\n.bogus\n")

    assert HELP_TEXT in output
    assert ("error", "Unknown command .bogus. Try .help") in logger.messages


def test_parse_assignments() -> None:
    assert parse_assignments(["name=Ada", "note=a=b", "age="]) == {"name": "Ada", "note": "a=b", "age": ""}

    with pytest.raises(ValueError):
        parse_assignments(["missing"])
    with pytest.raises(ValueError):
        parse_assignments(["=value"])
