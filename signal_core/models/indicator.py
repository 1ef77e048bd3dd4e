"""Indicator value models.

Units are fixed per field: RSI, volume strength and volatility are
percentages (0-100 scale), correlation is a fraction in [-1, 1], and
price-like values share the candle price unit.
"""

from enum import Enum

from pydantic import Field

from signal_core.models.base import CamelModel


class MacdValues(CamelModel):
    macd: float = 0.0
    signal: float = 0.0
    histogram: float = 0.0


class BollingerBands(CamelModel):
    upper: float
    middle: float
    lower: float


class VolumeTrend(str, Enum):
    """Direction of the latest volume relative to its average."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class VolumeAnalysis(CamelModel):
    """Volume strength, price/volume agreement and the volume profile.

    ``price_volume_correlation`` is a directional-agreement score, not a
    Pearson correlation: same-sign (price delta, volume delta) pairs count
    +1, opposite-sign pairs -1, normalized by the number of pairs.
    """

    strength: float = 50.0
    price_volume_correlation: float = Field(default=0.0, ge=-1.0, le=1.0)
    current: float = 0.0
    average: float = 0.0
    ratio: float = 1.0
    trend: VolumeTrend = VolumeTrend.STABLE
    anomaly: bool = False
    anomaly_score: float = 0.0


class Divergence(CamelModel):
    bullish: bool = False
    bearish: bool = False


class PriceCluster(CamelModel):
    """A group of nearby price points; ``strength`` is the member count."""

    value: float
    strength: int = 1


class SupportResistance(CamelModel):
    """Nearest strong levels around the latest close.

    ``support < close <= resistance`` holds whenever the data allows it;
    sparse data falls back to percentage offsets around the close.
    """

    support: float
    resistance: float


class IndicatorSnapshot(CamelModel):
    """Indicator values as of the most recent candle of a series.

    The moving-average fields keep their conventional names; their
    periods come from ``StrategyConfig`` (``ema_short``, ``ema_long``,
    ``sma_period``).
    """

    price: float
    rsi: float = Field(ge=0.0, le=100.0)
    macd: MacdValues
    ema9: float
    ema21: float
    sma50: float
    bollinger: BollingerBands
    atr: float = Field(ge=0.0)
    volatility_pct: float = Field(default=0.0, ge=0.0)
    volume: VolumeAnalysis
    divergence: Divergence
    support_resistance: SupportResistance
