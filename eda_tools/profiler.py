# profiler.py — Column profiling engine
# Type inference, descriptive stats, outliers, correlations, overview
"""
profiler.py — Column Profiling Engine

Implements the per-column profile consumed by the EDA dashboard:
- Semantic type inference (numeric / datetime / categorical / text)
- Missing-data metrics for every column
- Descriptive statistics, distribution label and IQR outliers for numerics
- Pairwise Pearson correlation matrix for numeric columns
- Dataset overview, missing-data report and category frequencies

All functions are pure; the table is never modified.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Sequence

from eda_tools import statistics as st
from eda_tools.table import Table, ensure_table, is_missing, is_plausible_date, to_number


logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

COLUMN_TYPES = ("numeric", "categorical", "datetime", "text")

# Type inference thresholds
NUMERIC_RATIO_THRESHOLD = 0.8  # Numeric if parseable share > 80%
CATEGORICAL_RATIO_THRESHOLD = 0.5  # Categorical if distinct < 50% of values

# Distribution labelling
MIN_DISTRIBUTION_OBSERVATIONS = 10
NORMAL_SKEW_THRESHOLD = 0.5
STRONG_SKEW_THRESHOLD = 1.0

# Outlier fences
IQR_MULTIPLIER = 1.5

# Missing-data severity (percent)
MISSING_HIGH_THRESHOLD = 20.0
MISSING_MODERATE_THRESHOLD = 10.0

NOT_COMPUTED_INSUFFICIENT = "INSUFFICIENT_DATA"
NOT_COMPUTED_INVALID = "INVALID_SELECTION"


def _not_computed(reason: str, message: str) -> dict:
    return {"computed": False, "reason": reason, "message": message}


# =============================================================================
# TYPE INFERENCE
# =============================================================================

def _distinct(values: Sequence[Any]) -> set:
    distinct = set()
    for value in values:
        try:
            distinct.add(value)
        except TypeError:
            distinct.add(repr(value))
    return distinct


def infer_column_type(values: Sequence[Any]) -> str:
    """
    Infer the semantic type of a column from its non-missing values.

    Rules, first match wins:
        1. numeric      parseable finite numbers > 80% of values
        2. datetime     any value is a date with 1900 < year < 2100
        3. categorical  distinct values < 50% of values
        4. text         everything else (including no values at all)
    """
    count = len(values)
    numeric_count = sum(1 for v in values if to_number(v) is not None)

    if numeric_count > count * NUMERIC_RATIO_THRESHOLD:
        return "numeric"

    if any(is_plausible_date(v) for v in values):
        return "datetime"

    if len(_distinct(values)) < count * CATEGORICAL_RATIO_THRESHOLD:
        return "categorical"

    return "text"


# =============================================================================
# NUMERIC HELPERS
# =============================================================================

def classify_distribution(values: Sequence[float]) -> str:
    """
    Label the shape of a numeric sample.

    Returns one of: "Insufficient data", "Normal", "Right-skewed",
    "Left-skewed", "Exponential", "Unknown"
    """
    if len(values) < MIN_DISTRIBUTION_OBSERVATIONS:
        return "Insufficient data"

    skewness = st.sample_skewness(values)
    if abs(skewness) < NORMAL_SKEW_THRESHOLD:
        return "Normal"
    if skewness > STRONG_SKEW_THRESHOLD:
        return "Right-skewed"
    if skewness < -STRONG_SKEW_THRESHOLD:
        return "Left-skewed"
    if all(v >= 0 for v in values) and st.mean(values) < st.std(values):
        return "Exponential"
    return "Unknown"


def detect_outliers(values: Sequence[float]) -> dict:
    """
    Tukey IQR outlier detection.

    Args:
        values: Numeric sample

    Returns:
        dict:
        {
            q1, q3, iqr: float,
            lower: float,   # Q1 - 1.5 * IQR
            upper: float,   # Q3 + 1.5 * IQR
            outliers: list[float]  # values strictly outside [lower, upper]
        }
    """
    if len(values) == 0:
        return {"q1": 0.0, "q3": 0.0, "iqr": 0.0, "lower": 0.0, "upper": 0.0, "outliers": []}

    q1 = st.quantile(values, 0.25)
    q3 = st.quantile(values, 0.75)
    iqr = q3 - q1
    lower = q1 - IQR_MULTIPLIER * iqr
    upper = q3 + IQR_MULTIPLIER * iqr

    return {
        "q1": q1,
        "q3": q3,
        "iqr": iqr,
        "lower": lower,
        "upper": upper,
        "outliers": [v for v in values if v < lower or v > upper],
    }


def numeric_values(table: Table, column: str) -> list[float]:
    """Parseable finite numbers of a column, in row order."""
    table = ensure_table(table)
    values = []
    for cell in table.column_values(column):
        if is_missing(cell):
            continue
        number = to_number(cell)
        if number is not None:
            values.append(number)
    return values


def _numeric_profile(values: list[float]) -> dict:
    fences = detect_outliers(values)
    return {
        "min": min(values),
        "max": max(values),
        "mean": st.mean(values),
        "median": st.median(values),
        "std": st.std(values),
        "distribution": classify_distribution(values),
        "outliers": fences["outliers"],
        "outlier_bounds": {
            "q1": fences["q1"],
            "q3": fences["q3"],
            "iqr": fences["iqr"],
            "lower": fences["lower"],
            "upper": fences["upper"],
        },
    }


# =============================================================================
# COLUMN PROFILING
# =============================================================================

def profile_column(name: str, cells: Sequence[Any]) -> dict:
    """
    Profile a single column.

    Returns:
        ColumnInfo dict:
        {
            name: str,
            type: "numeric" | "categorical" | "datetime" | "text",
            unique_values: int,
            missing_count: int,
            non_missing_count: int,
            missing_percentage: float,
            # numeric columns only:
            min, max, mean, median, std: float,
            distribution: str,
            outliers: list[float],
            outlier_bounds: {q1, q3, iqr, lower, upper}
        }
    """
    total = len(cells)
    present = [c for c in cells if not is_missing(c)]
    missing_count = total - len(present)

    column_type = infer_column_type(present)

    info = {
        "name": name,
        "type": column_type,
        "unique_values": len(_distinct(present)),
        "missing_count": missing_count,
        "non_missing_count": len(present),
        "missing_percentage": (missing_count / total * 100) if total > 0 else 0.0,
    }

    if column_type == "numeric":
        values = [n for n in (to_number(c) for c in present) if n is not None]
        if values:
            info.update(_numeric_profile(values))

    return info


def profile_columns(table) -> dict[str, dict]:
    """
    Profile every column of a table.

    Args:
        table: Table, DataFrame or list of records

    Returns:
        dict mapping column name -> ColumnInfo (see profile_column),
        in table column order. Empty table -> {}.
    """
    table = ensure_table(table)
    if table.is_empty:
        return {}

    profile = {
        column: profile_column(column, table.column_values(column))
        for column in table.columns
    }
    logger.debug(
        "Profiled %d columns over %d rows", len(profile), len(table)
    )
    return profile


# =============================================================================
# CORRELATION
# =============================================================================

def correlation(x: Sequence[Any], y: Sequence[Any]) -> float:
    """
    Pearson correlation over positions where both cells are numeric.

    Returns 0.0 when fewer than 2 pairs remain or either side is constant.
    """
    pairs = [
        (a, b)
        for a, b in ((to_number(u), to_number(v)) for u, v in zip(x, y))
        if a is not None and b is not None
    ]
    if len(pairs) < 2:
        return 0.0
    xs, ys = zip(*pairs)
    return st.pearson_correlation(xs, ys)


def correlation_matrix(
    table,
    columns: Sequence[str],
    column_info: dict[str, dict] | None = None,
) -> dict:
    """
    Pairwise correlation matrix for the selected numeric columns.

    Args:
        table: Table, DataFrame or list of records
        columns: Selected column names (order preserved)
        column_info: Optional profile; when given, non-numeric columns are
            dropped from the selection

    Returns:
        {computed: True, columns: list[str], matrix: list[list[float]]}
        or a not-computed dict when fewer than two usable columns remain.
    """
    table = ensure_table(table)
    selected = [c for c in columns if c in table]
    if column_info is not None:
        selected = [c for c in selected if column_info.get(c, {}).get("type") == "numeric"]

    if len(selected) < 2:
        return _not_computed(
            NOT_COMPUTED_INSUFFICIENT,
            "At least two numeric columns are needed for a correlation matrix",
        )

    cells = {c: table.column_values(c) for c in selected}
    matrix = []
    for i, col1 in enumerate(selected):
        row = []
        for j, col2 in enumerate(selected):
            if i == j:
                row.append(1.0)
            else:
                row.append(correlation(cells[col1], cells[col2]))
        matrix.append(row)

    return {"computed": True, "columns": selected, "matrix": matrix}


# =============================================================================
# OVERVIEW & REPORTS
# =============================================================================

def summarize_table(table, column_info: dict[str, dict] | None = None) -> dict:
    """
    Dataset-level quick stats.

    Returns:
        {
            row_count: int,
            column_count: int,
            type_summary: {numeric, categorical, datetime, text: int},
            total_missing: int,
            missing_pct: float
        }
    """
    table = ensure_table(table)
    if column_info is None:
        column_info = profile_columns(table)

    type_summary = {t: 0 for t in COLUMN_TYPES}
    for info in column_info.values():
        type_summary[info["type"]] += 1

    total_missing = sum(info["missing_count"] for info in column_info.values())
    total_cells = len(table) * len(table.columns)

    return {
        "row_count": len(table),
        "column_count": len(table.columns),
        "type_summary": type_summary,
        "total_missing": total_missing,
        "missing_pct": (total_missing / total_cells * 100) if total_cells > 0 else 0.0,
    }


def _missing_severity(pct: float) -> str:
    if pct > MISSING_HIGH_THRESHOLD:
        return "high"
    if pct > MISSING_MODERATE_THRESHOLD:
        return "moderate"
    return "low"


def missing_data_report(column_info: dict[str, dict]) -> list[dict]:
    """
    Columns that have missing data, worst first.

    Returns:
        list[{column, missing_count, missing_percentage, severity}]
        severity: "high" (> 20%), "moderate" (> 10%), "low"
    """
    report = [
        {
            "column": name,
            "missing_count": info["missing_count"],
            "missing_percentage": info["missing_percentage"],
            "severity": _missing_severity(info["missing_percentage"]),
        }
        for name, info in column_info.items()
        if info["missing_count"] > 0
    ]
    report.sort(key=lambda r: r["missing_percentage"], reverse=True)
    return report


def category_frequencies(table, column: str, top_n: int | None = None) -> list[dict]:
    """
    Value counts of a column, most frequent first (ties keep first-seen order).

    Returns:
        list[{value, count, pct}] where pct is relative to non-missing cells
    """
    table = ensure_table(table)
    if column not in table:
        return []

    present = [c for c in table.column_values(column) if not is_missing(c)]
    if not present:
        return []

    counts = Counter(present)
    ordered = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    if top_n is not None:
        ordered = ordered[:top_n]

    total = len(present)
    return [
        {"value": value, "count": count, "pct": count / total * 100}
        for value, count in ordered
    ]
