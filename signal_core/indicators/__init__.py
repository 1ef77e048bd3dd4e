"""Technical indicators (pure math, no I/O)."""

from signal_core.indicators.indicators import (
    ATR_FALLBACK,
    IndicatorCalculator,
    atr,
    bollinger_bands,
    ema,
    ema_series,
    macd,
    price_clusters,
    rsi,
    rsi_divergence,
    rsi_series,
    sma,
    support_resistance,
    true_range,
    volatility_description,
    volatility_pct,
    volume_analysis,
    volume_profile,
)

__all__ = [
    "ATR_FALLBACK",
    "IndicatorCalculator",
    "atr",
    "bollinger_bands",
    "ema",
    "ema_series",
    "macd",
    "price_clusters",
    "rsi",
    "rsi_divergence",
    "rsi_series",
    "sma",
    "support_resistance",
    "true_range",
    "volatility_description",
    "volatility_pct",
    "volume_analysis",
    "volume_profile",
]
