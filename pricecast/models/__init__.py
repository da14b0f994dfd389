"""Data models for forecasts, ledger entries and configuration."""

from pricecast.models.config import FusionConfig, HorizonWeights, LedgerConfig
from pricecast.models.forecast import Direction, Forecast, IndicatorKind, IndicatorReading
from pricecast.models.ledger import Horizon, HorizonStats, LedgerEntry, LedgerStats
from pricecast.models.series import ForecastInput

__all__ = [
    "FusionConfig",
    "HorizonWeights",
    "LedgerConfig",
    "Direction",
    "Forecast",
    "IndicatorKind",
    "IndicatorReading",
    "Horizon",
    "HorizonStats",
    "LedgerEntry",
    "LedgerStats",
    "ForecastInput",
]
