# tests/test_table.py
import datetime

import numpy as np
import pandas as pd
import pytest

from eda_tools.table import (
    Table,
    ensure_table,
    is_missing,
    is_plausible_date,
    to_number,
    to_timestamp,
)


@pytest.mark.parametrize("value", [None, "", float("nan"), pd.NA, pd.NaT, np.nan])
def test_missing_values(value):
    assert is_missing(value) is True


@pytest.mark.parametrize("value", [0, 0.0, " ", "a", False, datetime.date(2024, 1, 1)])
def test_present_values(value):
    assert is_missing(value) is False


def test_to_number_parses_numbers_and_numeric_strings():
    assert to_number(3) == 3.0
    assert to_number(2.5) == 2.5
    assert to_number(" 12 ") == 12.0
    assert to_number("1e3") == 1000.0
    assert to_number(np.int64(7)) == 7.0


@pytest.mark.parametrize("value", [True, False, "abc", "inf", "nan", float("inf"), None, "1_000", [1]])
def test_to_number_rejects_non_finite_and_non_numbers(value):
    assert to_number(value) is None


def test_to_timestamp_accepts_strings_and_native_dates():
    assert to_timestamp("2024-03-05") == pd.Timestamp("2024-03-05")
    assert to_timestamp(datetime.date(2024, 3, 5)) == pd.Timestamp("2024-03-05")
    assert to_timestamp(datetime.datetime(2024, 3, 5, 12)) == pd.Timestamp("2024-03-05 12:00")
    assert to_timestamp(np.datetime64("2024-03-05")) == pd.Timestamp("2024-03-05")


def test_to_timestamp_converts_aware_values_to_naive_utc():
    parsed = to_timestamp("2024-01-05T10:00:00+02:00")
    assert parsed.tzinfo is None
    assert parsed == pd.Timestamp("2024-01-05 08:00")


@pytest.mark.parametrize("value", [5, 3.2, True, "hello", "", None, "2024-13-45"])
def test_to_timestamp_rejects_non_dates(value):
    assert to_timestamp(value) is None


def test_plausible_date_year_window():
    assert is_plausible_date("2024-01-01") is True
    assert is_plausible_date("1850-01-01") is False
    assert is_plausible_date("1900-06-01") is False
    assert is_plausible_date("1901-06-01") is True


def test_columns_follow_first_record_then_later_keys():
    table = Table([{"b": 1, "a": 2}, {"a": 3, "c": 4}])
    assert table.columns == ["b", "a", "c"]
    assert table.column_values("c") == [None, 4]
    assert len(table) == 2
    assert "c" in table


def test_from_dataframe_maps_nan_to_none_and_keeps_order():
    df = pd.DataFrame({
        "x": [1.0, np.nan],
        "when": pd.to_datetime(["2024-01-01", None]),
        "empty": [None, None],
    })
    table = Table.from_dataframe(df)
    assert table.columns == ["x", "when", "empty"]
    assert table.column_values("x") == [1.0, None]
    assert table.column_values("when") == [pd.Timestamp("2024-01-01"), None]
    assert isinstance(table.column_values("x")[0], float)


def test_ensure_table_accepts_supported_inputs():
    records = [{"a": 1}]
    assert ensure_table(records).columns == ["a"]
    assert ensure_table(pd.DataFrame(records)).columns == ["a"]
    table = Table(records)
    assert ensure_table(table) is table
    assert ensure_table(None).is_empty


def test_records_are_copied():
    source = [{"a": 1}]
    table = Table(source)
    source[0]["a"] = 99
    assert table.column_values("a") == [1]
    table.records[0]["a"] = 42
    assert table.column_values("a") == [1]
