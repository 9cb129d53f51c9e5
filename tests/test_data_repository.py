import pandas as pd
import pandas.testing as pd_testing
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from core import data_repository


class _FakeResult:
    def __init__(self, rows, columns):
        self._rows = rows
        self._columns = columns

    def keys(self):
        return list(self._columns)

    def fetchall(self):
        return list(self._rows)


class _FakeConnection:
    def __init__(self, executed_container):
        self._executed = executed_container

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def execute(self, statement):
        raise TypeError("expected string or bytes-like object, got 'TextClause'")

    def exec_driver_sql(self, sql_text):
        self._executed["sql"] = sql_text
        return _FakeResult(rows=[(7,)], columns=["val"])


class _FakeEngine:
    def __init__(self, executed_container):
        self._executed = executed_container

    def begin(self):
        return _FakeConnection(self._executed)


class _PgError(Exception):
    pgcode = "42P01"


def test_query_df_retries_with_literal_sql(monkeypatch):
    executed = {}

    fake_engine = _FakeEngine(executed)
    monkeypatch.setattr(data_repository, "get_engine", lambda: fake_engine)

    df = data_repository.query_df(text("SELECT :value AS val"), params={"value": 7})

    assert executed["sql"].strip() == "SELECT 7 AS val"
    expected = pd.DataFrame([(7,)], columns=["val"])
    pd_testing.assert_frame_equal(df, expected)


def test_query_records_keeps_native_types(sqlite_engine, insert_rows):
    insert_rows("clients", [{"nom": "Diallo", "email": "awa@example.com"}])

    rows = data_repository.query_records("SELECT id, nom, prenom FROM clients")

    assert rows == [{"id": 1, "nom": "Diallo", "prenom": None}]


def test_query_df_returns_empty_frame_with_columns(sqlite_engine):
    df = data_repository.query_df("SELECT id, nom FROM clients")
    assert df.empty
    assert list(df.columns) == ["id", "nom"]


def test_missing_table_detection():
    wrapped = ProgrammingError("SELECT * FROM stock", {}, _PgError("relation \"stock\" does not exist"))
    assert data_repository.is_missing_table_error(wrapped)
    assert data_repository.is_missing_table_error(_PgError("boom"))

    sqlite_error = OperationalError("SELECT 1", {}, Exception("no such table: stock"))
    assert data_repository.is_missing_table_error(sqlite_error)

    other = OperationalError("SELECT 1", {}, Exception("database is locked"))
    assert not data_repository.is_missing_table_error(other)
    assert not data_repository.is_missing_table_error(ValueError("x"))
