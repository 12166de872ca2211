# nodes.py — Workflow node functions
# Steps: load → profile → select → analyze time series → payload
"""
nodes.py — LangGraph EDA Nodes

Each node is a pure function that takes EDAState and returns state updates.

Node Responsibilities:
- load_table_node: Coerce the input into a Table and validate it
- profile_columns_node: Column profiles, overview, missing report, correlations
- select_columns_node: Resolve date/value columns and the forecast horizon
- analyze_time_series_node: Series, trend statistics, decomposition, forecast
- build_payload_node: JSON-safe payload for the dashboard
- handle_error_node: Graceful error handling and recovery

Analysis shortfalls (too few points, bad selection) are reported as
not-computed results plus warnings; only load and unexpected failures route
to handle_error.
"""

from __future__ import annotations

import logging

from eda_config.settings import EDAConfig, load_config
from eda_tools.profiler import (
    correlation_matrix,
    missing_data_report,
    profile_columns,
    summarize_table,
)
from eda_tools.table import ensure_table
from eda_tools.timeseries import (
    INVALID_SELECTION,
    build_time_series,
    decompose,
    forecast,
    select_default_columns,
    trend_statistics,
)
from eda_tools.validators import (
    sanitize_dict_for_json,
    sanitize_forecast_periods,
    validate_column_selection,
    validate_table,
)


logger = logging.getLogger(__name__)


# =============================================================================
# PROGRESS HELPERS
# =============================================================================

def _emit_progress(
    state: dict,
    node: str,
    progress: float,
    message: str,
    status: str = "running",
) -> None:
    """
    Emit a progress update via the callback if available.

    Args:
        state: Current workflow state
        node: Current node name
        progress: Progress value (0.0 - 1.0)
        message: Human-readable progress message
        status: "running" | "complete" | "failed"
    """
    callback = state.get("progress_callback")
    if callback and callable(callback):
        try:
            callback({
                "node": node,
                "status": status,
                "progress": progress,
                "message": message,
            })
        except Exception:
            logger.exception("Progress callback failed in %s", node)


def _create_error_state(
    state: dict,
    node: str,
    error_msg: str,
    error_type: str,
    recovery_hint: str,
) -> dict:
    """
    Create state update for error routing.
    """
    logger.warning("%s failed (%s): %s", node, error_type, error_msg)
    return {
        "error": error_msg,
        "error_type": error_type,
        "failed_node": node,
        "recovery_hint": recovery_hint,
        "current_node": node,
        "partial_results": _has_partial_results(state),
    }


def _has_partial_results(state: dict) -> bool:
    """Check if state has any usable partial results."""
    return any([
        state.get("column_info"),
        state.get("overview"),
        state.get("time_series"),
    ])


def _config(state: dict) -> EDAConfig:
    return state.get("eda_config") or load_config()


def _skipped(reason: str, message: str) -> dict:
    return {"computed": False, "reason": reason, "message": message}


# =============================================================================
# NODE: LOAD TABLE
# =============================================================================

def load_table_node(state: dict) -> dict:
    """
    Coerce raw input into a Table and validate it.

    Input state:
        - raw_data: Table | pd.DataFrame | list[dict] (required)

    Output state updates:
        - table, row_count, col_count, current_node, progress

    On error:
        - error, error_type, failed_node, recovery_hint
    """
    node_name = "load_table"
    _emit_progress(state, node_name, 0.05, "Loading your data...")

    raw_data = state.get("raw_data")
    if raw_data is None:
        return _create_error_state(
            state, node_name,
            "No data provided",
            "DATA_MISSING",
            "Upload a CSV or Excel file to analyze.",
        )

    try:
        table = ensure_table(raw_data)
    except (TypeError, ValueError, AttributeError) as e:
        return _create_error_state(
            state, node_name,
            f"Data could not be read as a table: {str(e)}",
            "DATA_INVALID",
            "Provide rows as a list of records or a DataFrame.",
        )

    is_valid, table_error = validate_table(table)
    if not is_valid:
        return _create_error_state(
            state, node_name,
            table_error,
            "DATA_EMPTY",
            "The file appears to be empty. Please check and re-upload.",
        )

    _emit_progress(state, node_name, 0.15, "Data loaded", "complete")

    return {
        "table": table,
        "row_count": len(table),
        "col_count": len(table.columns),
        "current_node": node_name,
        "progress": 0.15,
        "progress_message": f"Loaded {len(table):,} rows × {len(table.columns)} columns",
    }


# =============================================================================
# NODE: PROFILE COLUMNS
# =============================================================================

def profile_columns_node(state: dict) -> dict:
    """
    Profile every column and derive dataset-level reports.

    Output state updates:
        - column_info, overview, missing_report, correlation, warnings
    """
    node_name = "profile_columns"
    _emit_progress(state, node_name, 0.20, "Profiling columns...")

    table = state.get("table")
    if table is None:
        return _create_error_state(
            state, node_name,
            "No table available for profiling",
            "DATA_MISSING",
            "Please re-upload your file.",
        )

    warnings = list(state.get("warnings", []))

    try:
        column_info = profile_columns(table)
    except Exception as e:
        return _create_error_state(
            state, node_name,
            f"Column profiling failed: {str(e)}",
            "ANALYSIS_FAILED",
            "The data structure could not be analyzed. Check for malformed columns.",
        )

    overview = summarize_table(table, column_info)
    missing_report = missing_data_report(column_info)

    numeric_columns = [n for n, info in column_info.items() if info["type"] == "numeric"]
    correlation = correlation_matrix(table, numeric_columns, column_info)

    high_missing = [r["column"] for r in missing_report if r["severity"] == "high"]
    if high_missing:
        warnings.append(f"High missing values (>20%) in: {', '.join(high_missing[:5])}")

    _emit_progress(state, node_name, 0.45, "Profiling complete", "complete")

    return {
        "column_info": column_info,
        "overview": overview,
        "missing_report": missing_report,
        "correlation": correlation,
        "warnings": warnings,
        "current_node": node_name,
        "progress": 0.45,
        "progress_message": (
            f"Profiled {len(column_info)} columns "
            f"({overview['type_summary']['numeric']} numeric)"
        ),
    }


# =============================================================================
# NODE: SELECT COLUMNS
# =============================================================================

def select_columns_node(state: dict) -> dict:
    """
    Resolve the date/value column pair and the forecast horizon.

    Explicit requests win; missing requests fall back to
    select_default_columns(). An invalid explicit request is kept (so the
    analysis reports it) and recorded as a warning.
    """
    node_name = "select_columns"
    _emit_progress(state, node_name, 0.50, "Choosing columns...")

    config = _config(state)
    column_info = state.get("column_info") or {}
    warnings = list(state.get("warnings", []))

    defaults = select_default_columns(
        state.get("table"), column_info, sample_size=config.date_sample_size
    )
    date_column = state.get("requested_date_column") or defaults["date_column"]
    value_column = state.get("requested_value_column") or defaults["value_column"]

    is_valid, selection_error = validate_column_selection(column_info, date_column, value_column)
    if not is_valid:
        warnings.append(f"Time-series analysis skipped: {selection_error}")

    horizon = sanitize_forecast_periods(
        state.get("forecast_periods"),
        default=config.default_forecast_periods,
        maximum=config.max_forecast_periods,
    )

    return {
        "date_column": date_column,
        "value_column": value_column,
        "horizon": horizon,
        "warnings": warnings,
        "current_node": node_name,
        "progress": 0.55,
        "progress_message": f"Date: {date_column or '-'}, value: {value_column or '-'}",
    }


# =============================================================================
# NODE: ANALYZE TIME SERIES
# =============================================================================

def analyze_time_series_node(state: dict) -> dict:
    """
    Build the series and run trend statistics, decomposition and forecast.

    Each analysis that cannot run yields its not-computed dict.
    """
    node_name = "analyze_time_series"
    _emit_progress(state, node_name, 0.60, "Analyzing time series...")

    config = _config(state)
    column_info = state.get("column_info") or {}
    date_column = state.get("date_column")
    value_column = state.get("value_column")
    warnings = list(state.get("warnings", []))

    is_valid, selection_error = validate_column_selection(column_info, date_column, value_column)
    if not is_valid:
        skipped = _skipped(INVALID_SELECTION, selection_error)
        return {
            "time_series": skipped,
            "trend_stats": skipped,
            "decomposition": skipped,
            "forecast": skipped,
            "current_node": node_name,
            "progress": 0.85,
            "progress_message": "Time-series analysis skipped",
        }

    try:
        series = build_time_series(state["table"], date_column, value_column)
        stats = trend_statistics(series)
        decomposition = decompose(series)
        prediction = forecast(series, state.get("horizon") or config.default_forecast_periods,
                              max_periods=config.max_forecast_periods)
    except Exception as e:
        return _create_error_state(
            state, node_name,
            f"Time-series analysis failed: {str(e)}",
            "ANALYSIS_FAILED",
            "Try a different date or value column.",
        )

    for label, result in (("Trend statistics", stats), ("Decomposition", decomposition),
                          ("Forecast", prediction)):
        if not result.get("computed"):
            warnings.append(f"{label} not computed: {result['message']}")

    _emit_progress(state, node_name, 0.85, "Time-series analysis complete", "complete")

    return {
        "time_series": series,
        "trend_stats": stats,
        "decomposition": decomposition,
        "forecast": prediction,
        "warnings": warnings,
        "current_node": node_name,
        "progress": 0.85,
        "progress_message": f"Series of {len(series.get('values', []))} points",
    }


# =============================================================================
# NODE: BUILD PAYLOAD
# =============================================================================

def _series_summary(series: dict | None) -> dict | None:
    if not series or not series.get("computed"):
        return series
    # Points duplicate dates/values; the dashboard plots the flat lists
    return {k: v for k, v in series.items() if k != "points"}


def build_payload_node(state: dict) -> dict:
    """
    Assemble the dashboard payload.

    Output state updates:
        - ui_payload: dict (JSON-safe)
    """
    node_name = "build_payload"
    _emit_progress(state, node_name, 0.95, "Preparing dashboard...")

    payload = {
        "is_error": False,
        "overview": state.get("overview"),
        "columns": state.get("column_info"),
        "missing_report": state.get("missing_report"),
        "correlation": state.get("correlation"),
        "selection": {
            "date_column": state.get("date_column"),
            "value_column": state.get("value_column"),
            "forecast_periods": state.get("horizon"),
        },
        "time_series": _series_summary(state.get("time_series")),
        "trend_stats": state.get("trend_stats"),
        "decomposition": state.get("decomposition"),
        "forecast": state.get("forecast"),
        "warnings": state.get("warnings", []),
    }

    _emit_progress(state, node_name, 1.0, "Analysis complete", "complete")

    return {
        "ui_payload": sanitize_dict_for_json(payload),
        "current_node": node_name,
        "progress": 1.0,
        "progress_message": "Analysis complete",
    }


# =============================================================================
# NODE: HANDLE ERROR
# =============================================================================

def handle_error_node(state: dict) -> dict:
    """
    Handle errors gracefully and prepare user-facing error payload.

    Input state:
        - error, error_type, failed_node, recovery_hint, partial_results

    Output state updates:
        - ui_payload: dict (error payload for UI)
    """
    node_name = "handle_error"
    _emit_progress(state, node_name, 0.99, "Handling error...", "failed")

    error = state.get("error", "An unknown error occurred")
    error_type = state.get("error_type", "UNKNOWN")
    failed_node = state.get("failed_node", "unknown")
    recovery_hint = state.get("recovery_hint", "Please try again.")
    has_partial = state.get("partial_results", False)

    error_payload = {
        "is_error": True,
        "error_message": error,
        "error_type": error_type,
        "failed_node": failed_node,
        "recovery_hint": recovery_hint,
        "has_partial_results": has_partial,
    }

    if has_partial:
        error_payload["partial_results"] = {
            "overview": state.get("overview"),
            "columns": state.get("column_info"),
            "missing_report": state.get("missing_report"),
            "warnings": state.get("warnings", []) + [f"Analysis incomplete: {error}"],
        }
        error_payload["message"] = "Partial results available despite error."

    return {
        "ui_payload": sanitize_dict_for_json(error_payload),
        "current_node": node_name,
        "progress": 1.0,
        "progress_message": f"Error: {error_type}",
    }
