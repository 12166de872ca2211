# tests/test_graph.py
import json

import numpy as np
import pandas as pd
import pytest

from eda_agent.graph import run_eda, stream_eda
from eda_agent.nodes import select_columns_node
from eda_config.settings import EDAConfig
from eda_tools.profiler import profile_columns


ENV_VARS = (
    "EDA_DEFAULT_FORECAST_PERIODS",
    "EDA_MAX_FORECAST_PERIODS",
    "EDA_DATE_SAMPLE_SIZE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def make_frame(n=30):
    rng = np.random.default_rng(11)
    return pd.DataFrame({
        "date": pd.date_range("2024-01-01", periods=n, freq="D").strftime("%Y-%m-%d"),
        "sales": (100 + np.arange(n) * 2 + rng.normal(0, 3, size=n)).round(2),
        "region": ["north", "south", "east"] * (n // 3) + ["north"] * (n % 3),
    })


def test_full_run_produces_payload():
    result = run_eda(make_frame(), forecast_periods=14)
    payload = result["ui_payload"]

    assert payload["is_error"] is False
    assert payload["selection"] == {
        "date_column": "date",
        "value_column": "sales",
        "forecast_periods": 14,
    }
    assert payload["overview"]["row_count"] == 30
    assert payload["columns"]["region"]["type"] == "categorical"
    assert payload["trend_stats"]["direction"] == "Increasing"
    assert payload["decomposition"]["computed"] is True
    assert payload["forecast"]["computed"] is True
    assert len(payload["forecast"]["forecast"]) == 14
    assert "points" not in payload["time_series"]

    # Timestamps and numpy scalars are already converted
    json.dumps(payload)


def test_records_input_and_explicit_columns():
    records = make_frame().to_dict("records")
    result = run_eda(records, date_column="date", value_column="sales")
    assert result["ui_payload"]["is_error"] is False
    assert result["horizon"] == 30


def test_empty_input_routes_to_error():
    payload = run_eda([])["ui_payload"]
    assert payload["is_error"] is True
    assert payload["error_type"] == "DATA_EMPTY"
    assert payload["failed_node"] == "load_table"
    assert payload["has_partial_results"] is False


def test_missing_input_routes_to_error():
    payload = run_eda(None)["ui_payload"]
    assert payload["error_type"] == "DATA_MISSING"


def test_invalid_input_routes_to_error():
    payload = run_eda(42)["ui_payload"]
    assert payload["is_error"] is True
    assert payload["error_type"] == "DATA_INVALID"


def test_short_series_warns_instead_of_failing():
    payload = run_eda(make_frame(5))["ui_payload"]
    assert payload["is_error"] is False
    assert payload["decomposition"]["computed"] is False
    assert payload["decomposition"]["reason"] == "INSUFFICIENT_DATA"
    assert payload["forecast"]["computed"] is True
    assert any(w.startswith("Decomposition not computed") for w in payload["warnings"])


def test_invalid_value_column_is_reported_not_raised():
    payload = run_eda(make_frame(), value_column="region")["ui_payload"]
    assert payload["is_error"] is False
    for key in ("time_series", "trend_stats", "decomposition", "forecast"):
        assert payload[key]["computed"] is False
        assert payload[key]["reason"] == "INVALID_SELECTION"
    assert any("skipped" in w for w in payload["warnings"])
    # Profiling still ran
    assert payload["overview"]["column_count"] == 3


def test_table_without_dates_skips_time_series():
    df = pd.DataFrame({"a": range(10), "b": ["x", "y"] * 5})
    payload = run_eda(df)["ui_payload"]
    assert payload["is_error"] is False
    assert payload["selection"]["date_column"] is None
    assert payload["forecast"]["reason"] == "INVALID_SELECTION"


def test_horizon_is_clamped_by_config():
    config = EDAConfig(default_forecast_periods=7, max_forecast_periods=10)
    result = run_eda(make_frame(), forecast_periods=500, config=config)
    assert result["horizon"] == 10
    assert len(result["ui_payload"]["forecast"]["forecast"]) == 10

    result = run_eda(make_frame(), config=config)
    assert result["horizon"] == 7


def test_stream_yields_nodes_in_order():
    names = [name for name, _ in stream_eda(make_frame())]
    assert names == [
        "load_table",
        "profile_columns",
        "select_columns",
        "analyze_time_series",
        "build_payload",
    ]


def test_stream_accumulates_state():
    snapshots = list(stream_eda(make_frame()))
    _, final_state = snapshots[-1]
    assert final_state["ui_payload"]["is_error"] is False
    assert final_state["column_info"] is not None


def test_stream_error_path():
    names = [name for name, _ in stream_eda(None)]
    assert names == ["load_table", "handle_error"]


def test_progress_callback_receives_updates():
    updates = []
    run_eda(make_frame(), progress_callback=updates.append)

    nodes = [u["node"] for u in updates]
    assert nodes[0] == "load_table"
    assert nodes[-1] == "build_payload"
    assert updates[-1]["progress"] == 1.0
    assert all(set(u) == {"node", "status", "progress", "message"} for u in updates)


def test_failing_callback_does_not_break_run():
    def explode(update):
        raise RuntimeError("ui went away")

    payload = run_eda(make_frame(), progress_callback=explode)["ui_payload"]
    assert payload["is_error"] is False


def test_select_columns_node_keeps_explicit_choice():
    frame = make_frame()
    state = {
        "table": None,
        "column_info": profile_columns(frame),
        "requested_date_column": "date",
        "requested_value_column": "sales",
        "forecast_periods": "21",
    }
    update = select_columns_node(state)
    assert update["date_column"] == "date"
    assert update["value_column"] == "sales"
    assert update["horizon"] == 21
    assert update["warnings"] == []


def test_environment_config_reaches_workflow(monkeypatch):
    monkeypatch.setenv("EDA_DEFAULT_FORECAST_PERIODS", "7")
    payload = run_eda(make_frame())["ui_payload"]
    assert payload["selection"]["forecast_periods"] == 7
    assert len(payload["forecast"]["forecast"]) == 7


def test_environment_max_clamps_requested_horizon(monkeypatch):
    monkeypatch.setenv("EDA_MAX_FORECAST_PERIODS", "12")
    names_and_states = list(stream_eda(make_frame(), forecast_periods=90))
    _, final_state = names_and_states[-1]
    assert final_state["horizon"] == 12


def test_oversized_config_max_is_capped():
    config = EDAConfig(max_forecast_periods=1000)
    result = run_eda(make_frame(), forecast_periods=800, config=config)
    assert result["horizon"] == 365
    assert result["ui_payload"]["forecast"]["computed"] is True
