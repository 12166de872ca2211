# validators.py — Input sanitization & validation
# Table checks, column selection guards, JSON-safe payloads
"""
validators.py — Input Sanitization & Validation

Production implementation for:
- Table validation before profiling
- Date/value column selection checks against the column profile
- Forecast horizon sanitization
- JSON-safe conversion of analysis results
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

import numpy as np
import pandas as pd

from eda_tools.table import Table
from eda_tools.timeseries import MAX_FORECAST_PERIODS, MIN_FORECAST_PERIODS


# =============================================================================
# TABLE VALIDATION
# =============================================================================

def validate_table(table: Table | None) -> tuple[bool, str | None]:
    """
    Validate that a table is suitable for analysis.

    Returns:
        (is_valid, error_message)
    """
    if table is None:
        return False, "No data provided"

    if not isinstance(table, Table):
        return False, "Data is not a valid table"

    if len(table) == 0:
        return False, "Table has no rows"

    if len(table.columns) == 0:
        return False, "Table has no columns"

    return True, None


# =============================================================================
# SELECTION VALIDATION
# =============================================================================

def validate_column_selection(
    column_info: dict[str, dict],
    date_column: str | None,
    value_column: str | None,
) -> tuple[bool, str | None]:
    """
    Validate a (date column, value column) choice against the profile.

    The date column must exist; the value column must exist and be numeric.
    A date column the profiler did not type as datetime is accepted, since
    series construction parses dates per row.

    Returns:
        (is_valid, error_message)
    """
    if not date_column or not value_column:
        return False, "Select both a date column and a value column"

    if date_column not in column_info:
        return False, f"Date column '{date_column}' does not exist"

    if value_column not in column_info:
        return False, f"Value column '{value_column}' does not exist"

    if date_column == value_column:
        return False, "Date and value columns must differ"

    if column_info[value_column].get("type") != "numeric":
        return False, f"Value column '{value_column}' is not numeric"

    if column_info[date_column].get("type") == "numeric":
        return False, f"Date column '{date_column}' holds numbers, not dates"

    return True, None


# =============================================================================
# INPUT SANITIZATION
# =============================================================================

def sanitize_forecast_periods(
    value: Any,
    default: int = 30,
    maximum: int = MAX_FORECAST_PERIODS,
) -> int:
    """
    Coerce user input for the forecast horizon.

    Non-numeric input falls back to `default`; numbers are truncated and
    clamped to [1, maximum]; maximum itself never exceeds 365.
    """
    if value is None or isinstance(value, bool):
        return default

    try:
        periods = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default

    maximum = min(maximum, MAX_FORECAST_PERIODS)
    return max(MIN_FORECAST_PERIODS, min(periods, maximum))


def sanitize_dict_for_json(obj: Any) -> Any:
    """
    Recursively sanitize a dict/list for JSON serialization.
    Handles numpy types, NaN, Inf, timestamps, etc.
    """
    if obj is None:
        return None

    if isinstance(obj, dict):
        return {k: sanitize_dict_for_json(v) for k, v in obj.items()}

    if isinstance(obj, (list, tuple)):
        return [sanitize_dict_for_json(v) for v in obj]

    if isinstance(obj, (pd.Timestamp, datetime, date)):
        if pd.isna(obj):
            return None
        return obj.isoformat()

    if isinstance(obj, np.datetime64):
        return sanitize_dict_for_json(pd.Timestamp(obj))

    if isinstance(obj, (np.bool_,)):
        return bool(obj)

    if isinstance(obj, (np.integer,)):
        return int(obj)

    if isinstance(obj, (np.floating,)):
        if np.isnan(obj) or np.isinf(obj):
            return None
        return float(obj)

    if isinstance(obj, np.ndarray):
        return sanitize_dict_for_json(obj.tolist())

    if isinstance(obj, float):
        if obj != obj or obj == float("inf") or obj == float("-inf"):  # NaN check
            return None
        return obj

    return obj
