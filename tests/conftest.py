import pytest
from sqlalchemy import create_engine, text

from student_loader.core.config import get_settings


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'students.db'}"


@pytest.fixture
def write_csv(tmp_path):
    def _write(content, name="students.csv", encoding="utf-8"):
        path = tmp_path / name
        path.write_text(content, encoding=encoding)
        return path
    return _write


@pytest.fixture
def make_settings(database_url):
    def _make(**overrides):
        values = {"DATABASE_URL": database_url, "_env_file": None}
        values.update(overrides)
        return get_settings(**values)
    return _make


@pytest.fixture
def run_sql(database_url):
    """Execute raw SQL against the test database, returning fetched rows."""
    def _run(statement):
        engine = create_engine(database_url)
        try:
            with engine.begin() as conn:
                result = conn.execute(text(statement))
                return [tuple(row) for row in result] if result.returns_rows else []
        finally:
            engine.dispose()
    return _run


@pytest.fixture
def fetch_rows(run_sql):
    def _fetch(table="students"):
        return run_sql(f"SELECT name, age, grade, gender FROM {table} ORDER BY id")
    return _fetch
