import pytest
from sqlalchemy.exc import OperationalError

from core.sources import SourceResult, degraded_sources, fetch_first_available, fetch_source


def _missing(table):
    def loader():
        raise OperationalError(f"SELECT * FROM {table}", {}, Exception(f"no such table: {table}"))

    return loader


def test_fetch_source_ok():
    result = fetch_source("clients", lambda: 3, 0)
    assert result == SourceResult(source="clients", value=3)
    assert not result.degraded


def test_missing_table_degrades_to_default():
    result = fetch_source("factures_transport", _missing("factures_transport"), [])
    assert result.degraded
    assert result.value == []
    assert result.reason == "table absente"


def test_other_errors_propagate():
    def broken():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    with pytest.raises(OperationalError):
        fetch_source("clients", broken, 0)


def test_fetch_first_available_falls_back_to_second_table():
    result = fetch_first_available("stocks", [("stocks", _missing("stocks")), ("stock", lambda: 4)], 0)
    assert result.value == 4
    assert result.source == "stocks"
    assert not result.degraded


def test_fetch_first_available_all_missing():
    result = fetch_first_available("stocks", [("stocks", _missing("stocks")), ("stock", _missing("stock"))], 0)
    assert result.degraded
    assert result.value == 0
    assert "stock:" in result.reason


def test_degraded_sources_are_unique_and_sorted():
    results = [
        SourceResult.missing("stocks", 0, "table absente"),
        SourceResult.ok("clients", 2),
        SourceResult.missing("caisse", 0, "table absente"),
        SourceResult.missing("stocks", [], "table absente"),
    ]
    assert degraded_sources(results) == ["caisse", "stocks"]
