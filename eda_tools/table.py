# table.py — In-memory table model & scalar parsing
# Records in, columns out; shared missing/number/date detection
"""
table.py — Table Model & Scalar Helpers

Row-oriented table used by every analysis in eda_tools:
- Column order taken from the first record, extended by later records
- Construction from record lists or pandas DataFrames
- Scalar helpers: missing detection, finite-number parsing, date parsing

A cell is one of: int | float | str | bool | date/datetime | None.
"""

from __future__ import annotations

import math
import re
import warnings
from datetime import date, datetime
from typing import Any, Iterable, Iterator, Mapping

import numpy as np
import pandas as pd


# =============================================================================
# CONSTANTS
# =============================================================================

MIN_VALID_YEAR = 1900  # Exclusive
MAX_VALID_YEAR = 2100  # Exclusive
_HAS_DIGIT = re.compile(r"\d")


# =============================================================================
# SCALAR HELPERS
# =============================================================================

def is_missing(value: Any) -> bool:
    """Return True for None, NaN/NaT/pd.NA and the empty string."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, float):
        return math.isnan(value)
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def to_number(value: Any) -> float | None:
    """
    Parse a cell as a finite number.

    Booleans are not numbers. Strings are stripped before parsing.

    Returns:
        float value, or None when the cell is not a finite number
    """
    if value is None or isinstance(value, (bool, np.bool_)):
        return None

    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None

    return number if math.isfinite(number) else None


def to_timestamp(value: Any) -> pd.Timestamp | None:
    """
    Parse a cell as a calendar timestamp.

    Accepts native date/datetime/Timestamp/datetime64 values and date strings.
    Numbers and booleans are never dates. Timezone-aware values are converted
    to naive UTC so that series stay comparable.

    Returns:
        pd.Timestamp, or None when the cell is not a valid date
    """
    if value is None or isinstance(value, (bool, np.bool_, int, float, np.number)):
        return None

    if isinstance(value, str):
        text = value.strip()
        if not text or not _HAS_DIGIT.search(text):
            return None
        candidate: Any = text
    elif isinstance(value, (pd.Timestamp, datetime, date, np.datetime64)):
        candidate = value
    else:
        return None

    try:
        with warnings.catch_warnings():
            # pandas warns when it falls back to dateutil for a lone string
            warnings.simplefilter("ignore", UserWarning)
            parsed = pd.to_datetime(candidate, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None

    if parsed is None or pd.isna(parsed):
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.tz_convert("UTC").tz_localize(None)

    return parsed


def is_plausible_date(value: Any) -> bool:
    """Date-like check used by type inference (1900 < year < 2100)."""
    parsed = to_timestamp(value)
    if parsed is None:
        return False
    return MIN_VALID_YEAR < parsed.year < MAX_VALID_YEAR


# =============================================================================
# TABLE
# =============================================================================

class Table:
    """
    Ordered sequence of records with a fixed column order.

    Columns are the key order of the first record, followed by any keys
    that only appear in later records. Absent keys read as missing.
    """

    def __init__(self, records: Iterable[Mapping[str, Any]] | None = None):
        self._records: list[dict[str, Any]] = [dict(r) for r in (records or [])]

        columns: list[str] = []
        seen: set[str] = set()
        for record in self._records:
            for key in record:
                if key not in seen:
                    seen.add(key)
                    columns.append(key)
        self._columns = columns

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "Table":
        return cls(records)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame) -> "Table":
        """Build a Table from a DataFrame; NaN/NaT cells become None."""
        if df is None or len(df.columns) == 0:
            return cls([])

        frame = df.copy()
        frame.columns = [str(c) for c in frame.columns]
        cleaned = frame.astype(object).where(frame.notna(), None)
        records = [
            {col: _native(val) for col, val in row.items()}
            for row in cleaned.to_dict(orient="records")
        ]
        table = cls(records)
        # Keep DataFrame column order even for all-missing columns
        table._columns = list(frame.columns)
        return table

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    @property
    def records(self) -> list[dict[str, Any]]:
        return [dict(r) for r in self._records]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self._records)

    def __contains__(self, column: object) -> bool:
        return column in self._columns

    @property
    def is_empty(self) -> bool:
        return len(self._records) == 0

    def column_values(self, column: str) -> list[Any]:
        """All cells of a column in row order (absent keys as None)."""
        return [record.get(column) for record in self._records]

    def head(self, n: int) -> "Table":
        return Table(self._records[:n])


def ensure_table(data: Table | pd.DataFrame | Iterable[Mapping[str, Any]] | None) -> Table:
    """Coerce supported inputs (Table, DataFrame, list of dicts) into a Table."""
    if data is None:
        return Table([])
    if isinstance(data, Table):
        return data
    if isinstance(data, pd.DataFrame):
        return Table.from_dataframe(data)
    return Table.from_records(data)


def _native(value: Any) -> Any:
    """Convert numpy scalars to Python natives."""
    if isinstance(value, np.generic):
        return value.item()
    return value
