"""Data models (pydantic) shared by the engine and the backtest."""

from signal_core.models.base import CamelModel
from signal_core.models.candle import Candle, CandleSeries
from signal_core.models.config import StrategyConfig
from signal_core.models.indicator import (
    BollingerBands,
    Divergence,
    IndicatorSnapshot,
    MacdValues,
    PriceCluster,
    SupportResistance,
    VolumeAnalysis,
    VolumeTrend,
)
from signal_core.models.signal import (
    ClosedTrade,
    Direction,
    EquityPoint,
    Signal,
    TimeframeTrends,
    Trade,
    TradeResult,
    TrendBias,
)

__all__ = [
    "CamelModel",
    "Candle",
    "CandleSeries",
    "StrategyConfig",
    "BollingerBands",
    "Divergence",
    "IndicatorSnapshot",
    "MacdValues",
    "PriceCluster",
    "SupportResistance",
    "VolumeAnalysis",
    "VolumeTrend",
    "ClosedTrade",
    "Direction",
    "EquityPoint",
    "Signal",
    "TimeframeTrends",
    "Trade",
    "TradeResult",
    "TrendBias",
]
