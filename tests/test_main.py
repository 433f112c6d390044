import logging

import pytest

from student_loader.core.exceptions import InputFileError, LoaderException
from student_loader.core.handlers import handle_exception
from student_loader.main import main, run

HEADER = "name,age,calificacion,genero\n"


@pytest.fixture
def cli(database_url, monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)

    def _cli(csv_path, *extra):
        return main(["--csv-path", str(csv_path), "--database-url", database_url, *extra])
    return _cli


def test_single_row(cli, write_csv, fetch_rows, capsys):
    assert cli(write_csv(HEADER + "Ana,20,85,F\n")) == 0
    assert capsys.readouterr().out == "Records inserted: 1\n"
    assert fetch_rows() == [("Ana", 20, 85, "F")]


def test_header_only(cli, write_csv, fetch_rows, capsys):
    assert cli(write_csv(HEADER)) == 0
    assert capsys.readouterr().out == "Records inserted: 0\n"
    assert fetch_rows() == []


def test_malformed_row_is_skipped(cli, write_csv, fetch_rows, capsys):
    assert cli(write_csv(HEADER + "Ana,20,85,F\nLuis,twenty,70,M\n")) == 0
    assert capsys.readouterr().out == "Records inserted: 1\n"
    assert fetch_rows() == [("Ana", 20, 85, "F")]


def test_empty_file(cli, write_csv, capsys):
    assert cli(write_csv("")) == 0
    assert capsys.readouterr().out == "Records inserted: 0\n"


def test_n_minus_k_rows(cli, write_csv, fetch_rows, capsys):
    rows = ["Ana,20,85,F", "bad,row", "Luis,22,70,M", "Maria,x,92,F", "Pedro,19,77,M", "Eva,18,,F"]
    assert cli(write_csv(HEADER + "\n".join(rows) + "\n")) == 0
    assert capsys.readouterr().out == "Records inserted: 3\n"
    assert [row[0] for row in fetch_rows()] == ["Ana", "Luis", "Pedro"]


def test_running_twice_doubles_rows(cli, write_csv, fetch_rows, capsys):
    path = write_csv(HEADER + "Ana,20,85,F\nLuis,22,70,M\n")
    assert cli(path) == 0
    assert cli(path) == 0
    assert capsys.readouterr().out == "Records inserted: 2\nRecords inserted: 2\n"
    assert len(fetch_rows()) == 4


def test_strict_mode_aborts(cli, write_csv, fetch_rows, capsys):
    assert cli(write_csv(HEADER + "Ana,20,85,F\nLuis,twenty,70,M\n"), "--strict") == 4
    assert capsys.readouterr().out == ""


def test_missing_file(cli, tmp_path, capsys):
    assert cli(tmp_path / "nope.csv") == 3
    assert capsys.readouterr().out == ""


def test_invalid_configuration_fails_before_reading(cli, write_csv, capsys):
    assert cli(write_csv(HEADER + "Ana,20,85,F\n"), "--delimiter", ";;") == 2
    assert capsys.readouterr().out == ""


def test_unreachable_database(write_csv, tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    url = f"sqlite:///{tmp_path / 'missing' / 'x.db'}"
    assert main(["--csv-path", str(write_csv(HEADER + "Ana,20,85,F\n")), "--database-url", url]) == 5
    assert capsys.readouterr().out == ""


def test_no_create_table_on_missing_table(cli, write_csv, capsys):
    assert cli(write_csv(HEADER + "Ana,20,85,F\n"), "--no-create-table") == 6
    assert capsys.readouterr().out == ""


def test_run_returns_count(make_settings, write_csv, fetch_rows):
    settings = make_settings(CSV_PATH=str(write_csv("n;a;g;s\nAna;20;85;F\n")), CSV_DELIMITER=";")
    assert run(settings) == 1
    assert fetch_rows() == [("Ana", 20, 85, "F")]


def test_handle_exception_exit_codes():
    assert handle_exception(InputFileError("gone")) == 3
    assert handle_exception(LoaderException("boom")) == 1
    assert handle_exception(ValueError("bug")) == 1


def test_handle_exception_logs(caplog):
    with caplog.at_level(logging.ERROR):
        handle_exception(InputFileError("gone"))
    assert "INPUT_FILE_ERROR" in caplog.text


def test_unknown_driver_fails_before_reading_input(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    # The CSV path does not exist: reaching the file would exit 3
    assert main(["--csv-path", str(tmp_path / "nope.csv"), "--database-url", "nosuchdb://u:p@h/db"]) == 2
    assert capsys.readouterr().out == ""


def test_row_count_query_only_runs_for_debug(make_settings, write_csv, monkeypatch):
    from student_loader.services.student.store import StudentStore

    def fail(self):
        raise AssertionError("count() should not run below DEBUG")

    monkeypatch.setattr(StudentStore, "count", fail)
    logging.getLogger("student_loader.main").setLevel(logging.INFO)
    try:
        settings = make_settings(CSV_PATH=str(write_csv(HEADER + "Ana,20,85,F\n")))
        assert run(settings) == 1
    finally:
        logging.getLogger("student_loader.main").setLevel(logging.NOTSET)
