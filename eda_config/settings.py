# settings.py — Runtime configuration & logging setup
# Environment-driven defaults for the EDA workflow
"""
settings.py — EDA Configuration

Reads workflow settings from the environment:

    EDA_DEFAULT_FORECAST_PERIODS  default forecast horizon (30)
    EDA_MAX_FORECAST_PERIODS      upper bound for the horizon (365)
    EDA_DATE_SAMPLE_SIZE          rows sampled for date-column fallback (10)
    EDA_LOG_LEVEL                 logging level name (INFO)

Statistical thresholds live as module constants in eda_tools.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_FORECAST_PERIODS = 30
DEFAULT_MAX_FORECAST_PERIODS = 365
DEFAULT_DATE_SAMPLE_SIZE = 10
DEFAULT_LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


# =============================================================================
# CONFIG
# =============================================================================

@dataclass
class EDAConfig:
    """Configuration for an EDA workflow run."""
    default_forecast_periods: int = DEFAULT_FORECAST_PERIODS
    max_forecast_periods: int = DEFAULT_MAX_FORECAST_PERIODS
    date_sample_size: int = DEFAULT_DATE_SAMPLE_SIZE
    log_level: str = DEFAULT_LOG_LEVEL


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def load_config() -> EDAConfig:
    """
    Build an EDAConfig from environment variables.

    Unset or unparsable values fall back to the defaults. The default
    horizon is clamped to the maximum.
    """
    max_periods = min(
        _env_int("EDA_MAX_FORECAST_PERIODS", DEFAULT_MAX_FORECAST_PERIODS),
        DEFAULT_MAX_FORECAST_PERIODS,
    )
    default_periods = min(
        _env_int("EDA_DEFAULT_FORECAST_PERIODS", DEFAULT_FORECAST_PERIODS),
        max_periods,
    )
    level = os.environ.get("EDA_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        level = DEFAULT_LOG_LEVEL

    return EDAConfig(
        default_forecast_periods=default_periods,
        max_forecast_periods=max_periods,
        date_sample_size=_env_int("EDA_DATE_SAMPLE_SIZE", DEFAULT_DATE_SAMPLE_SIZE),
        log_level=level,
    )


def configure_logging(config: EDAConfig | None = None) -> None:
    """Configure root logging from the config level."""
    config = config or load_config()
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
