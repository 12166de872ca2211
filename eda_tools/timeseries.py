# timeseries.py — Time-series analysis engine
# Series construction, decomposition, forecasting, trend statistics
"""
timeseries.py — Time-Series Analysis Engine

Works on a (date column, value column) pair of a table:
- build_time_series: parse, drop bad rows, stable sort by date
- detect_date_columns / select_default_columns: default column selection
- decompose: moving-average seasonal decomposition (additive)
- forecast: degree-2 polynomial regression with a constant 95% band
- trend_statistics: half-over-half trend, volatility, direction

Analyses never raise on bad data; they return a not-computed dict:
    {computed: False, reason: "INSUFFICIENT_DATA" | "INVALID_SELECTION"
     | "DEGENERATE_ARITHMETIC", message: str}
"""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
import pandas as pd

from eda_tools import statistics as st
from eda_tools.table import ensure_table, is_missing, to_number, to_timestamp


logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

INSUFFICIENT_DATA = "INSUFFICIENT_DATA"
INVALID_SELECTION = "INVALID_SELECTION"
DEGENERATE_ARITHMETIC = "DEGENERATE_ARITHMETIC"

# Decomposition
MIN_DECOMPOSITION_POINTS = 12
MAX_SEASONAL_PERIOD = 12

# Forecasting
POLYNOMIAL_DEGREE = 2
MIN_FORECAST_PERIODS = 1
MAX_FORECAST_PERIODS = 365
CONFIDENCE_LEVEL = 95
CONFIDENCE_Z = 1.96

# Trend statistics
MIN_TREND_POINTS = 2
TREND_THRESHOLD_PCT = 5.0

# Date column detection
DATE_SAMPLE_SIZE = 10

SECONDS_PER_DAY = 86400.0


def _not_computed(reason: str, message: str) -> dict:
    return {"computed": False, "reason": reason, "message": message}


# =============================================================================
# SERIES CONSTRUCTION
# =============================================================================

def build_time_series(table, date_column: str, value_column: str) -> dict:
    """
    Pair a date column with a value column into an ordered series.

    Rows whose date does not parse or whose value is not a finite number are
    dropped. Remaining points are sorted ascending by date; ties keep the
    original row order.

    Args:
        table: Table, DataFrame or list of records
        date_column: Column holding dates
        value_column: Column holding numeric values

    Returns:
        dict:
        {
            computed: True,
            date_column: str,
            value_column: str,
            points: list[{date: pd.Timestamp, value: float, index: int}],
            dates: list[pd.Timestamp],
            values: list[float],
            row_count: int,
            dropped_count: int,
            coverage_pct: float
        }
        or a not-computed dict (INVALID_SELECTION) for unknown columns.
    """
    table = ensure_table(table)

    missing_cols = [c for c in (date_column, value_column) if not c or c not in table]
    if missing_cols:
        return _not_computed(
            INVALID_SELECTION,
            f"Column(s) not found: {', '.join(str(c) for c in missing_cols)}",
        )

    points = []
    for index, record in enumerate(table):
        raw_value = record.get(value_column)
        if is_missing(raw_value):
            continue

        date = to_timestamp(record.get(date_column))
        value = to_number(raw_value)
        if date is None or value is None:
            continue

        points.append({"date": date, "value": value, "index": index})

    # sorted() is stable, so equal dates keep row order
    points.sort(key=lambda p: p["date"])

    row_count = len(table)
    dropped = row_count - len(points)
    if dropped:
        logger.debug(
            "Dropped %d of %d rows building series %s/%s",
            dropped, row_count, date_column, value_column,
        )

    return {
        "computed": True,
        "date_column": date_column,
        "value_column": value_column,
        "points": points,
        "dates": [p["date"] for p in points],
        "values": [p["value"] for p in points],
        "row_count": row_count,
        "dropped_count": dropped,
        "coverage_pct": (len(points) / row_count * 100) if row_count > 0 else 0.0,
    }


def _series_arrays(series: dict | None) -> tuple[list[pd.Timestamp], np.ndarray] | None:
    if not series or not series.get("computed", True):
        return None
    return list(series.get("dates", [])), np.asarray(series.get("values", []), dtype=float)


# =============================================================================
# COLUMN SELECTION
# =============================================================================

def _looks_like_date_column(table, column: str, sample_size: int) -> bool:
    sample = [
        v for v in table.head(sample_size).column_values(column)
        if not is_missing(v)
    ]
    if not sample:
        return False
    parsed = sum(1 for v in sample if to_timestamp(v) is not None)
    return parsed > len(sample) / 2


def detect_date_columns(
    table,
    column_info: dict[str, dict],
    sample_size: int = DATE_SAMPLE_SIZE,
) -> list[str]:
    """
    Candidate date columns, in column order.

    Columns profiled as "datetime" win. If there are none, non-numeric
    columns whose first `sample_size` rows are mostly parseable dates are
    returned instead.
    """
    table = ensure_table(table)
    typed = [name for name, info in column_info.items() if info.get("type") == "datetime"]
    if typed:
        return typed

    return [
        name
        for name, info in column_info.items()
        if info.get("type") != "numeric" and _looks_like_date_column(table, name, sample_size)
    ]


def select_default_columns(
    table,
    column_info: dict[str, dict],
    sample_size: int = DATE_SAMPLE_SIZE,
) -> dict:
    """
    Best-guess (date column, value column) pair.

    Returns:
        {date_column: str | None, value_column: str | None}
    """
    date_candidates = detect_date_columns(table, column_info, sample_size)
    date_column = date_candidates[0] if date_candidates else None

    value_column = next(
        (
            name for name, info in column_info.items()
            if info.get("type") == "numeric" and name != date_column
        ),
        None,
    )
    return {"date_column": date_column, "value_column": value_column}


# =============================================================================
# SEASONAL DECOMPOSITION
# =============================================================================

def _moving_average_trend(values: np.ndarray, period: int) -> np.ndarray:
    n = len(values)
    half = period // 2
    trend = np.zeros(n)

    # Window spans 2*half + 1 points but the sum is divided by period
    for i in range(half, n - half):
        trend[i] = values[i - half:i + half + 1].sum() / period

    # Flat fill towards both edges
    trend[:half] = trend[half]
    trend[n - half:] = trend[n - 1 - half]
    return trend


def decompose(series: dict) -> dict:
    """
    Additive moving-average decomposition.

    period = min(12, n // 4); trend is the sum of the 2*(period // 2) + 1
    centred values divided by period at interior indices, with flat edge
    fill; the seasonal pattern is the mean detrended value per
    (index mod period), tiled over the series.

    Returns:
        {
            computed: True,
            period: int,
            dates: list[pd.Timestamp],
            trend: list[float],
            seasonal: list[float],
            residual: list[float],
            seasonal_pattern: list[float]
        }
        or a not-computed dict (fewer than 12 points).
    """
    arrays = _series_arrays(series)
    if arrays is None:
        return _not_computed(INVALID_SELECTION, "No time series available")

    dates, values = arrays
    n = len(values)
    if n < MIN_DECOMPOSITION_POINTS:
        return _not_computed(
            INSUFFICIENT_DATA,
            f"Decomposition needs at least {MIN_DECOMPOSITION_POINTS} points, got {n}",
        )

    period = min(MAX_SEASONAL_PERIOD, n // 4)
    trend = _moving_average_trend(values, period)
    detrended = values - trend

    phases = np.arange(n) % period
    pattern = np.array([detrended[phases == p].mean() for p in range(period)])
    seasonal = pattern[phases]
    residual = values - trend - seasonal

    return {
        "computed": True,
        "period": period,
        "dates": dates,
        "trend": trend.tolist(),
        "seasonal": seasonal.tolist(),
        "residual": residual.tolist(),
        "seasonal_pattern": pattern.tolist(),
    }


# =============================================================================
# FORECASTING
# =============================================================================

def _validate_horizon(horizon: Any, max_periods: int) -> str | None:
    if isinstance(horizon, (bool, np.bool_)) or not isinstance(horizon, (int, np.integer)):
        return f"Forecast periods must be an integer, got {horizon!r}"
    if not MIN_FORECAST_PERIODS <= horizon <= max_periods:
        return f"Forecast periods must be between {MIN_FORECAST_PERIODS} and {max_periods}, got {horizon}"
    return None


def forecast(
    series: dict,
    horizon: int,
    max_periods: int = MAX_FORECAST_PERIODS,
) -> dict:
    """
    Polynomial-regression forecast with a constant-width confidence band.

    A degree-2 polynomial (lower when there are fewer distinct x values) is
    fitted to (days since first observation, value). Forecast dates advance
    one calendar day at a time from the last observation, whatever the
    sampling interval of the input.

    Args:
        series: Output of build_time_series()
        horizon: Number of future days, 1..max_periods
        max_periods: Upper bound for horizon, capped at 365

    Returns:
        {
            computed: True,
            dates: list[pd.Timestamp],
            forecast: list[float],
            upper_bound: list[float],
            lower_bound: list[float],
            confidence: int,
            horizon: int,
            degree: int,
            coefficients: list[float],   # highest power first
            residual_std: float
        }
        or a not-computed dict.
    """
    max_periods = min(max_periods, MAX_FORECAST_PERIODS)
    horizon_error = _validate_horizon(horizon, max_periods)
    if horizon_error:
        return _not_computed(INVALID_SELECTION, horizon_error)

    arrays = _series_arrays(series)
    if arrays is None:
        return _not_computed(INVALID_SELECTION, "No time series available")

    dates, values = arrays
    if len(values) < 1:
        return _not_computed(INSUFFICIENT_DATA, "Forecast needs at least 1 point")

    first = dates[0]
    x = np.array([(d - first).total_seconds() / SECONDS_PER_DAY for d in dates])

    degree = min(POLYNOMIAL_DEGREE, len(np.unique(x)) - 1)
    coefficients = np.polyfit(x, values, degree)
    if not np.all(np.isfinite(coefficients)):
        return _not_computed(DEGENERATE_ARITHMETIC, "Polynomial fit did not converge")

    residuals = values - np.polyval(coefficients, x)
    residual_std = st.std(residuals)
    margin = CONFIDENCE_Z * residual_std

    steps = np.arange(1, horizon + 1)
    future_x = x[-1] + steps
    predicted = np.polyval(coefficients, future_x)
    if not np.all(np.isfinite(predicted)):
        return _not_computed(DEGENERATE_ARITHMETIC, "Forecast produced non-finite values")

    last = dates[-1]
    future_dates = [last + pd.Timedelta(days=int(step)) for step in steps]

    return {
        "computed": True,
        "dates": future_dates,
        "forecast": predicted.tolist(),
        "upper_bound": (predicted + margin).tolist(),
        "lower_bound": (predicted - margin).tolist(),
        "confidence": CONFIDENCE_LEVEL,
        "horizon": int(horizon),
        "degree": int(degree),
        "coefficients": [float(c) for c in coefficients],
        "residual_std": residual_std,
    }


# =============================================================================
# TREND STATISTICS
# =============================================================================

def classify_trend(overall_trend_pct: float) -> str:
    """Direction label: "Increasing" (> 5%), "Decreasing" (< -5%), else "Stable"."""
    if overall_trend_pct > TREND_THRESHOLD_PCT:
        return "Increasing"
    if overall_trend_pct < -TREND_THRESHOLD_PCT:
        return "Decreasing"
    return "Stable"


def _relative_returns(values: np.ndarray) -> list[float]:
    return [
        (values[i] - values[i - 1]) / values[i - 1]
        for i in range(1, len(values))
        if values[i - 1] != 0
    ]


def trend_statistics(series: dict) -> dict:
    """
    Summary trend statistics of a series.

    overall_trend_pct compares the mean of the second half (which takes the
    extra point for odd n) with the mean of the first half. Zero
    denominators are skipped for returns and give 0.0 for the trend.

    Returns:
        {
            computed: True,
            overall_trend_pct: float,
            volatility_pct: float,
            direction: "Increasing" | "Decreasing" | "Stable",
            point_count: int,
            date_range: {start, end: pd.Timestamp, label: str},
            coverage_pct: float
        }
        or a not-computed dict (fewer than 2 points).
    """
    arrays = _series_arrays(series)
    if arrays is None:
        return _not_computed(INVALID_SELECTION, "No time series available")

    dates, values = arrays
    n = len(values)
    if n < MIN_TREND_POINTS:
        return _not_computed(
            INSUFFICIENT_DATA,
            f"Trend statistics need at least {MIN_TREND_POINTS} points, got {n}",
        )

    split = n // 2
    first_mean = st.mean(values[:split])
    second_mean = st.mean(values[split:])
    if first_mean == 0:
        logger.debug("First-half mean is zero; overall trend reported as 0")
        overall_trend = 0.0
    else:
        overall_trend = (second_mean - first_mean) / first_mean * 100

    returns = _relative_returns(values)
    volatility = st.std(returns) * 100 if returns else 0.0

    start, end = dates[0], dates[-1]
    return {
        "computed": True,
        "overall_trend_pct": float(overall_trend),
        "volatility_pct": float(volatility),
        "direction": classify_trend(overall_trend),
        "point_count": n,
        "date_range": {
            "start": start,
            "end": end,
            "label": f"{start.strftime('%b %Y')} - {end.strftime('%b %Y')}",
        },
        "coverage_pct": float(series.get("coverage_pct", 100.0)),
    }
