# state.py — Shared EDAState schema
# TypedDict definition for state passed between workflow nodes
"""
state.py — EDA Workflow State Schema

Defines the TypedDict structure for state passed between LangGraph nodes.
"""

from __future__ import annotations

from typing import Any, Callable, TypedDict

from eda_config.settings import EDAConfig, load_config
from eda_tools.table import Table


class EDAState(TypedDict, total=False):
    """
    Shared state passed between all workflow nodes.

    All fields are optional (total=False) to support partial updates.
    """

    # =========================================================================
    # INPUT LAYER
    # =========================================================================
    raw_data: Any  # Table, DataFrame or list of records
    requested_date_column: str | None
    requested_value_column: str | None
    forecast_periods: Any  # Raw horizon input, sanitized by select_columns
    eda_config: EDAConfig

    # =========================================================================
    # DATA LAYER
    # =========================================================================
    table: Table | None
    row_count: int
    col_count: int

    # =========================================================================
    # PROFILE LAYER
    # =========================================================================
    column_info: dict | None  # Output from profile_columns()
    overview: dict | None  # Output from summarize_table()
    missing_report: list[dict] | None
    correlation: dict | None

    # =========================================================================
    # SELECTION LAYER
    # =========================================================================
    date_column: str | None
    value_column: str | None
    horizon: int

    # =========================================================================
    # TIME-SERIES LAYER
    # =========================================================================
    time_series: dict | None
    trend_stats: dict | None
    decomposition: dict | None
    forecast: dict | None

    # =========================================================================
    # OUTPUT LAYER
    # =========================================================================
    ui_payload: dict | None
    warnings: list[str]

    # =========================================================================
    # CONTROL LAYER
    # =========================================================================
    current_node: str | None
    progress: float
    progress_message: str | None

    # =========================================================================
    # ERROR LAYER
    # =========================================================================
    error: str | None
    error_type: str | None
    failed_node: str | None
    partial_results: bool
    recovery_hint: str | None

    # =========================================================================
    # CALLBACKS (not persisted)
    # =========================================================================
    progress_callback: Callable[[dict], None] | None


def create_initial_state(
    raw_data: Any = None,
    date_column: str | None = None,
    value_column: str | None = None,
    forecast_periods: Any = None,
    config: EDAConfig | None = None,
    progress_callback: Callable[[dict], None] | None = None,
) -> EDAState:
    """
    Create a fresh EDAState with default values.

    Args:
        raw_data: Table, DataFrame or list of records
        date_column: Optional explicit date column
        value_column: Optional explicit value column
        forecast_periods: Optional forecast horizon (days)
        config: Optional EDAConfig, read from the environment if not provided
        progress_callback: Optional callback for progress updates

    Returns:
        Initialized EDAState dict
    """
    return EDAState(
        # Input
        raw_data=raw_data,
        requested_date_column=date_column,
        requested_value_column=value_column,
        forecast_periods=forecast_periods,
        eda_config=config or load_config(),

        # Data
        table=None,
        row_count=0,
        col_count=0,

        # Profile
        column_info=None,
        overview=None,
        missing_report=None,
        correlation=None,

        # Selection
        date_column=None,
        value_column=None,
        horizon=0,

        # Time series
        time_series=None,
        trend_stats=None,
        decomposition=None,
        forecast=None,

        # Output
        ui_payload=None,
        warnings=[],

        # Control
        current_node=None,
        progress=0.0,
        progress_message=None,

        # Error
        error=None,
        error_type=None,
        failed_node=None,
        partial_results=False,
        recovery_hint=None,

        # Callbacks
        progress_callback=progress_callback,
    )
