"""Higher-timeframe aggregation and trend bias.

Aggregates 1-minute candles into 5m/15m/30m candles and reads a trend
bias from each, producing the multi-timeframe hints the signal engine
accepts.

Aggregation rules:
- Groups of ``factor`` consecutive candles are aligned to the latest
  candle, so the newest aggregated candle always ends at ``series[-1]``
- An incomplete leading group is discarded
- open = first open, high = max high, low = min low, close = last close,
  volume = sum, timestamp = first timestamp of the group
"""

from __future__ import annotations

import logging

from signal_core.indicators import ema
from signal_core.models import (
    Candle,
    CandleSeries,
    StrategyConfig,
    TimeframeTrends,
    TrendBias,
)

logger = logging.getLogger(__name__)

# Higher timeframe name to number of base (1m) candles
TIMEFRAME_FACTORS = {
    "m5": 5,
    "m15": 15,
    "m30": 30,
}


def resample(series: CandleSeries, factor: int) -> CandleSeries:
    """Aggregate every ``factor`` consecutive candles into one."""
    if factor <= 1:
        return series

    candles = series.candles
    start = len(candles) % factor
    aggregated: list[Candle] = []

    for i in range(start, len(candles), factor):
        group = candles[i : i + factor]
        aggregated.append(
            Candle(
                timestamp=group[0].timestamp,
                open=group[0].open,
                high=max(c.high for c in group),
                low=min(c.low for c in group),
                close=group[-1].close,
                volume=sum(c.volume for c in group),
            )
        )

    return CandleSeries.model_construct(symbol=series.symbol, candles=aggregated)


def trend_window_size(config: StrategyConfig | None = None) -> int:
    """1-minute candles needed for every timeframe to hold ``ema_long`` candles."""
    cfg = config or StrategyConfig()
    return max(TIMEFRAME_FACTORS.values()) * cfg.ema_long


def trend_bias(series: CandleSeries, config: StrategyConfig | None = None) -> TrendBias:
    """
    Read the trend of a series from its short/long EMAs.

    Bullish when ema_short > ema_long and the close is above ema_long,
    bearish in the mirror case, neutral otherwise or when there are
    fewer than ``ema_long`` candles.
    """
    cfg = config or StrategyConfig()
    closes = series.get_closes()
    if len(closes) < cfg.ema_long:
        return TrendBias.NEUTRAL

    fast = ema(closes, cfg.ema_short)
    slow = ema(closes, cfg.ema_long)
    close = closes[-1]

    if fast > slow and close > slow:
        return TrendBias.BULLISH
    if fast < slow and close < slow:
        return TrendBias.BEARISH
    return TrendBias.NEUTRAL


def derive_timeframe_trends(
    series: CandleSeries,
    config: StrategyConfig | None = None,
) -> TimeframeTrends:
    """Trend bias of a 1-minute series on the 5m, 15m and 30m timeframes."""
    trends = {
        name: trend_bias(resample(series, factor), config)
        for name, factor in TIMEFRAME_FACTORS.items()
    }
    logger.debug(
        f"Timeframe trends for {series.symbol or 'series'}: "
        + ", ".join(f"{k}={v.value}" for k, v in trends.items())
    )
    return TimeframeTrends(**trends)
