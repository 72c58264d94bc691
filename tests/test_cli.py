from __future__ import annotations

import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

import entry_expiration.cli as cli
from entry_expiration.logging import setup_logging
from entry_expiration.settings import Settings
from entry_expiration.store import connect


runner = CliRunner()


def _seed_db(db_path: Path, old: int, new: int) -> None:
    conn = connect(db_path)
    conn.execute("CREATE TABLE wp_wpforms_entries (entry_id INTEGER PRIMARY KEY, form_id INTEGER, date TEXT NOT NULL)")
    conn.executemany(
        "INSERT INTO wp_wpforms_entries(form_id, date) VALUES(1, ?)",
        [("2001-01-01 00:00:00",)] * old + [("2999-01-01 00:00:00",)] * new,
    )
    conn.commit()
    conn.close()


def _count(db_path: Path) -> int:
    conn = connect(db_path)
    try:
        return int(conn.execute("SELECT COUNT(*) FROM wp_wpforms_entries").fetchone()[0])
    finally:
        conn.close()


@pytest.fixture
def db_path(tmp_path: Path, monkeypatch) -> Path:
    path = tmp_path / "entries.db"
    settings = Settings(EE_DB_BACKEND="SQLITE", EE_DB_PATH=path, EE_LOG_DIR=tmp_path / "_logs")
    monkeypatch.setattr(cli, "load_settings", lambda: settings)
    # Keep pytest's log capture handlers in place.
    monkeypatch.setattr(cli, "setup_logging", lambda s, console=False: tmp_path / "_logs" / "entry_expiration.log")
    return path


def test_clean_entries_deletes_old_rows(db_path: Path) -> None:
    _seed_db(db_path, old=3, new=2)

    result = runner.invoke(cli.app, ["clean-entries", "6months"])

    assert result.exit_code == 0, result.output
    assert "Start the cleaning process for entries before :" in result.output
    assert "Success: 3 entries deleted" in result.output
    assert "Success: End cleaning forms expired entries" in result.output
    assert _count(db_path) == 2


def test_clean_entries_dry_run(db_path: Path) -> None:
    _seed_db(db_path, old=5, new=1)

    result = runner.invoke(cli.app, ["clean-entries", "6months", "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "Warning: Dry run: 5 entries would be deleted" in result.output
    assert _count(db_path) == 6


def test_clean_entries_nothing_to_delete(db_path: Path) -> None:
    _seed_db(db_path, old=0, new=2)

    result = runner.invoke(cli.app, ["clean-entries", "90days"])

    assert result.exit_code == 0, result.output
    assert "Warning: No entries to delete." in result.output
    assert "End cleaning" not in result.output


@pytest.mark.parametrize(
    "args, message",
    [
        (["clean-entries"], "Expired time is empty"),
        (["clean-entries", ""], "Expired time is empty"),
        (["clean-entries", "not-a-time"], "Expired time is not readable"),
        (["clean-entries", "9" * 5000 + "days"], "Expired time is not readable"),
        (["clean-entries", "٦months"], "Expired time is not readable"),
    ],
)
def test_clean_entries_invalid_duration_exits_nonzero(
    db_path: Path, monkeypatch, args: list[str], message: str
) -> None:
    def _no_settings():
        raise AssertionError("settings must not be loaded for an invalid duration")

    monkeypatch.setattr(cli, "load_settings", _no_settings)

    result = runner.invoke(cli.app, args)

    assert result.exit_code == 1
    assert message in result.output
    # No connection is opened, so the SQLite file is never created.
    assert not db_path.exists()


def test_clean_entries_invalid_settings_exits_nonzero(monkeypatch) -> None:
    monkeypatch.setattr(cli, "load_settings", lambda: Settings(EE_MYSQL_PORT="abc"))

    result = runner.invoke(cli.app, ["clean-entries", "6months"])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
    assert "EE_MYSQL_PORT" in result.output


def test_clean_entries_unwritable_log_dir_exits_nonzero(db_path: Path, monkeypatch) -> None:
    def _denied(settings, console=False):
        raise PermissionError(13, "Permission denied", "_logs")

    monkeypatch.setattr(cli, "setup_logging", _denied)

    result = runner.invoke(cli.app, ["clean-entries", "6months"])

    assert result.exit_code == 1
    assert "Could not prepare data or log directories" in result.output


def test_clean_entries_store_error_exits_nonzero(db_path: Path) -> None:
    # Database without the entries table.
    connect(db_path).close()

    result = runner.invoke(cli.app, ["clean-entries", "6months"])

    assert result.exit_code == 1
    assert "no such table" in result.output


def test_standalone_clean_entries_app(db_path: Path) -> None:
    _seed_db(db_path, old=1, new=0)

    result = runner.invoke(cli.clean_entries_app, ["1year", "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "Dry run: 1 entries would be deleted" in result.output


def test_setup_logging_writes_rotating_file(tmp_path: Path) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        settings = Settings(EE_LOG_DIR=tmp_path / "logs", EE_LOG_LEVEL="debug")
        log_file = setup_logging(settings)
        setup_logging(settings)

        assert log_file == tmp_path / "logs" / "entry_expiration.log"
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG

        logging.getLogger("entry_expiration").info("Start the cleaning process")
        for h in root.handlers:
            h.flush()
        assert "| INFO | entry_expiration | Start the cleaning process" in log_file.read_text(encoding="utf-8")
    finally:
        for h in root.handlers:
            h.close()
        root.handlers = saved_handlers
        root.setLevel(saved_level)
