# statistics.py — Shared statistical helpers
# Mean, median, std, quantile, skewness, correlation
"""
statistics.py — Shared Statistical Helpers

Single home for the numeric conventions used across the profiler and the
time-series analyzer:

- median: element at index n // 2 of the sorted sample (no averaging)
- std: population standard deviation (ddof = 0)
- quantile: linear interpolation between closest ranks (numpy "linear")
- skewness: adjusted Fisher-Pearson sample skewness
- correlation: Pearson sample correlation

Every helper returns 0.0 instead of NaN/inf for empty or degenerate input.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from scipy import stats


# =============================================================================
# CONSTANTS
# =============================================================================

QUANTILE_METHOD = "linear"


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=float)


def _finite_or_zero(value: float) -> float:
    return float(value) if np.isfinite(value) else 0.0


# =============================================================================
# CENTRAL TENDENCY & SPREAD
# =============================================================================

def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sample."""
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return _finite_or_zero(arr.mean())


def median(values: Sequence[float]) -> float:
    """
    Lower-middle median: sorted[n // 2].

    For even n this is the upper of the two middle elements and no
    averaging takes place.
    """
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(np.sort(arr)[arr.size // 2])


def std(values: Sequence[float]) -> float:
    """Population standard deviation; 0.0 for an empty sample."""
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return _finite_or_zero(arr.std(ddof=0))


def quantile(values: Sequence[float], q: float) -> float:
    """Quantile with linear interpolation between closest ranks."""
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(np.quantile(arr, q, method=QUANTILE_METHOD))


# =============================================================================
# SHAPE
# =============================================================================

def sample_skewness(values: Sequence[float]) -> float:
    """
    Adjusted Fisher-Pearson skewness (bias corrected).

    Needs at least 3 values with non-zero variance, otherwise 0.0.
    """
    arr = _as_array(values)
    if arr.size < 3 or np.ptp(arr) == 0:
        return 0.0
    return _finite_or_zero(stats.skew(arr, bias=False))


# =============================================================================
# ASSOCIATION
# =============================================================================

def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    Pearson sample correlation of two aligned samples.

    Returns 0.0 when fewer than 2 pairs are given or either side has zero
    variance.
    """
    x_arr = _as_array(x)
    y_arr = _as_array(y)
    if x_arr.size != y_arr.size or x_arr.size < 2:
        return 0.0
    if np.ptp(x_arr) == 0 or np.ptp(y_arr) == 0:
        return 0.0

    r, _ = stats.pearsonr(x_arr, y_arr)
    return float(np.clip(_finite_or_zero(r), -1.0, 1.0))
