"""Technical indicators for signal decisions.

Every function takes oldest-first sequences (the last element is the
latest candle), has no side effects, and never raises for short input:
insufficient history returns the documented neutral default instead.

Recurrences (EMA, Wilder RSI) run as plain loops over NumPy float64
arrays; window statistics use NumPy reductions.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from signal_core.models import (
    BollingerBands,
    CandleSeries,
    Divergence,
    IndicatorSnapshot,
    MacdValues,
    PriceCluster,
    StrategyConfig,
    SupportResistance,
    VolumeAnalysis,
    VolumeTrend,
)

# Returned by atr() when there are fewer than period + 1 candles
ATR_FALLBACK = 0.001

# Bollinger fallback envelope (fraction of last price)
BB_FALLBACK_PCT = 0.02

# Support/resistance fallback offset (fraction of last price)
SR_FALLBACK_PCT = 0.005

# Volume ratio bands for the volume trend
VOLUME_INCREASING_RATIO = 1.2
VOLUME_DECREASING_RATIO = 0.8

# Volume z-score above which the latest volume is anomalous
VOLUME_ANOMALY_Z = 2.0


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def _last(values: Sequence[float]) -> float:
    return float(values[-1]) if len(values) else 0.0


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


# =============================================================================
# Moving averages
# =============================================================================

def ema_series(values: Sequence[float], period: int) -> list[float]:
    """
    Calculate the Exponential Moving Average after every candle.

    Seeded with the simple mean of the first ``period`` values, then
    ``ema = (value - ema) * 2 / (period + 1) + ema``.

    Returns:
        List of EMA values (same length as input, NaN before the seed)
    """
    arr = _as_array(values)
    result = np.full(len(arr), np.nan)
    if period <= 0 or len(arr) < period:
        return result.tolist()

    multiplier = 2.0 / (period + 1)
    value = float(np.mean(arr[:period]))
    result[period - 1] = value

    for i in range(period, len(arr)):
        value = (float(arr[i]) - value) * multiplier + value
        result[i] = value

    return result.tolist()


def ema(values: Sequence[float], period: int) -> float:
    """Latest EMA value; the last input value if there is not enough data."""
    if period <= 0 or len(values) < period:
        return _last(values)
    return ema_series(values, period)[-1]


def sma(values: Sequence[float], period: int) -> float:
    """Mean of the trailing ``period`` values; the last value if insufficient."""
    if period <= 0 or len(values) < period:
        return _last(values)
    return float(np.mean(_as_array(values)[-period:]))


# =============================================================================
# Momentum
# =============================================================================

def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    return 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)


def rsi_series(closes: Sequence[float], period: int = 14) -> list[float]:
    """
    Calculate Wilder's RSI as of every candle.

    The first ``period`` deltas seed average gain/loss from simple
    means; later deltas update with ``avg = (avg * (period - 1) + x) / period``.
    Candles without ``period + 1`` closes of history get 50.

    Returns:
        List of RSI values in [0, 100], same length as input
    """
    n = len(closes)
    result = [50.0] * n
    if period <= 0 or n < period + 1:
        return result

    arr = _as_array(closes)
    deltas = np.diff(arr)

    seed = deltas[:period]
    avg_gain = float(np.sum(seed[seed > 0])) / period
    avg_loss = float(-np.sum(seed[seed < 0])) / period
    result[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period, len(deltas)):
        delta = float(deltas[i])
        gain = delta if delta > 0 else 0.0
        loss = -delta if delta < 0 else 0.0
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period
        result[i + 1] = _rsi_value(avg_gain, avg_loss)

    return result


def rsi(closes: Sequence[float], period: int = 14) -> float:
    """Latest Wilder RSI; 50 when fewer than ``period + 1`` closes."""
    if period <= 0 or len(closes) < period + 1:
        return 50.0
    return rsi_series(closes, period)[-1]


def macd(
    closes: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal_period: int = 9,
) -> MacdValues:
    """
    Calculate MACD line, signal line and histogram.

    The MACD line after each candle is ``ema(closes[:k], fast) -
    ema(closes[:k], slow)``; the signal line is the EMA of that series
    over ``signal_period`` values. All zero when fewer than
    ``slow + signal_period`` closes.
    """
    if min(fast, slow, signal_period) <= 0 or len(closes) < slow + signal_period:
        return MacdValues()

    fast_values = ema_series(closes, fast)
    slow_values = ema_series(closes, slow)
    start = max(fast, slow) - 1
    line = [f - s for f, s in zip(fast_values[start:], slow_values[start:])]

    macd_line = line[-1]
    signal_line = ema(line, signal_period)
    return MacdValues(
        macd=macd_line,
        signal=signal_line,
        histogram=macd_line - signal_line,
    )


# =============================================================================
# Volatility
# =============================================================================

def bollinger_bands(
    closes: Sequence[float],
    period: int = 20,
    std_dev_mult: float = 2.0,
) -> BollingerBands:
    """
    Calculate Bollinger Bands.

    middle = sma(closes, period); upper/lower = middle +/- mult * population
    standard deviation of the trailing ``period`` closes. Falls back to
    +/-2% of the last close when there is not enough data.
    """
    if not len(closes):
        return BollingerBands(upper=0.0, middle=0.0, lower=0.0)
    if period <= 0 or len(closes) < period:
        last = _last(closes)
        return BollingerBands(
            upper=last * (1 + BB_FALLBACK_PCT),
            middle=last,
            lower=last * (1 - BB_FALLBACK_PCT),
        )

    middle = sma(closes, period)
    std = float(np.std(_as_array(closes)[-period:]))
    return BollingerBands(
        upper=middle + std_dev_mult * std,
        middle=middle,
        lower=middle - std_dev_mult * std,
    )


def true_range(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
) -> list[float]:
    """
    Calculate True Range.

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close));
    the first candle has no previous close and uses high - low.
    """
    n = min(len(highs), len(lows), len(closes))
    if n == 0:
        return []

    h = _as_array(highs)[-n:]
    l = _as_array(lows)[-n:]
    c = _as_array(closes)[-n:]

    tr = h - l
    if n > 1:
        prev_close = c[:-1]
        tr[1:] = np.maximum.reduce(
            [h[1:] - l[1:], np.abs(h[1:] - prev_close), np.abs(l[1:] - prev_close)]
        )
    return tr.tolist()


def atr(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> float:
    """
    Average True Range: simple mean of the trailing ``period`` true ranges.

    Needs ``period + 1`` candles so every range has a previous close;
    otherwise returns ATR_FALLBACK. Never negative.
    """
    n = min(len(highs), len(lows), len(closes))
    if period <= 0 or n < period + 1:
        return ATR_FALLBACK
    ranges = true_range(highs, lows, closes)[-period:]
    return max(0.0, float(np.mean(ranges)))


def volatility_pct(atr_value: float, price: float) -> float:
    """ATR as a percentage of price (0 for a non-positive price)."""
    if price <= 0:
        return 0.0
    return max(0.0, atr_value / price * 100)


def volatility_description(pct: float) -> str:
    """Human-readable band for an ATR percentage."""
    if pct < 0.2:
        return "Very low"
    if pct < 0.5:
        return "Low"
    if pct < 0.8:
        return "Below average"
    if pct < 1.2:
        return "Average"
    if pct < 1.8:
        return "Above average"
    if pct < 2.5:
        return "High"
    return "Very high"


# =============================================================================
# Volume
# =============================================================================

def volume_profile(volumes: Sequence[float], period: int = 20) -> dict:
    """
    Compare the latest volume with its trailing average.

    Returns:
        Dict with current, average, ratio, trend, anomaly, anomaly_score.
        The average includes the latest volume; a zero average gives ratio 1.
    """
    if not len(volumes) or period <= 0:
        return {
            "current": 0.0,
            "average": 0.0,
            "ratio": 1.0,
            "trend": VolumeTrend.STABLE,
            "anomaly": False,
            "anomaly_score": 0.0,
        }

    window = _as_array(volumes)[-period:]
    current = float(window[-1])
    average = float(np.mean(window))
    ratio = current / average if average > 0 else 1.0

    if ratio > VOLUME_INCREASING_RATIO:
        trend = VolumeTrend.INCREASING
    elif ratio < VOLUME_DECREASING_RATIO:
        trend = VolumeTrend.DECREASING
    else:
        trend = VolumeTrend.STABLE

    std = float(np.std(window))
    z_score = abs(current - average) / (std if std > 0 else 1.0)

    return {
        "current": current,
        "average": average,
        "ratio": ratio,
        "trend": trend,
        "anomaly": z_score > VOLUME_ANOMALY_Z,
        "anomaly_score": min(1.0, z_score / 4),
    }


def volume_analysis(
    volumes: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
    profile_period: int = 20,
) -> VolumeAnalysis:
    """
    Calculate volume strength and price/volume agreement.

    strength = clamp(0, 100, latest / mean(trailing period) * 50).

    price_volume_correlation is a directional-agreement score, not a
    Pearson correlation: over the ``period - 1`` most recent candle pairs,
    same-sign (price delta, volume delta) pairs count +1, opposite-sign
    pairs -1 (a zero delta counts neither), divided by the number of pairs.

    Falls back to strength 50 and agreement 0 when either series is
    shorter than ``period``. Profile fields come from volume_profile().
    """
    profile = volume_profile(volumes, profile_period)
    if period < 2 or len(volumes) < period or len(closes) < period:
        return VolumeAnalysis(strength=50.0, price_volume_correlation=0.0, **profile)

    vol = _as_array(volumes)[-period:]
    prices = _as_array(closes)[-period:]

    average = float(np.mean(vol))
    if average > 0:
        strength = _clamp(float(vol[-1]) / average * 50, 0.0, 100.0)
    else:
        strength = 50.0

    price_sign = np.sign(np.diff(prices))
    volume_sign = np.sign(np.diff(vol))
    agreement = float(np.sum(price_sign * volume_sign))
    correlation = _clamp(agreement / (period - 1), -1.0, 1.0)

    return VolumeAnalysis(
        strength=strength,
        price_volume_correlation=correlation,
        **profile,
    )


# =============================================================================
# Divergence
# =============================================================================

def rsi_divergence(
    closes: Sequence[float],
    rsi_values: Sequence[float],
    lookback: int = 5,
) -> Divergence:
    """
    Detect RSI divergence within the last ``lookback`` candles.

    Bullish: the latest close is the lowest close of the window (at or
    below the prior low) while the latest RSI is above the RSI recorded at
    that prior low. Bearish mirrors this on highs. The two sequences are
    aligned on their last element.
    """
    n = min(len(closes), len(rsi_values))
    if lookback < 2 or n < lookback:
        return Divergence()

    prices = _as_array(closes)[-lookback:]
    oscillator = _as_array(rsi_values)[-lookback:]
    prior = prices[:-1]

    # Most recent occurrence of the prior extreme
    low_idx = len(prior) - 1 - int(np.argmin(prior[::-1]))
    high_idx = len(prior) - 1 - int(np.argmax(prior[::-1]))

    bullish = prices[-1] <= prior[low_idx] and oscillator[-1] > oscillator[low_idx]
    bearish = prices[-1] >= prior[high_idx] and oscillator[-1] < oscillator[high_idx]
    return Divergence(bullish=bool(bullish), bearish=bool(bearish))


# =============================================================================
# Support / resistance
# =============================================================================

def _within(price: float, level: float, tolerance: float) -> bool:
    if level == 0:
        return price == 0
    return abs(price - level) / abs(level) < tolerance


def price_clusters(
    prices: Sequence[float],
    tolerance: float = 0.0005,
) -> list[PriceCluster]:
    """
    Greedily cluster price points.

    Points are visited in ascending order. Each joins the nearest existing
    cluster within relative ``tolerance`` (moving that cluster's value to
    the running average of its members) or starts a new cluster.

    Returns:
        Clusters sorted by member count, strongest first (ties keep
        ascending price order)
    """
    clusters: list[list[float]] = []  # [value, strength]

    for price in sorted(float(p) for p in prices):
        nearest = None
        for cluster in clusters:
            if not _within(price, cluster[0], tolerance):
                continue
            if nearest is None or abs(price - cluster[0]) < abs(price - nearest[0]):
                nearest = cluster

        if nearest is None:
            clusters.append([price, 1])
        else:
            value, strength = nearest
            nearest[0] = (value * strength + price) / (strength + 1)
            nearest[1] = strength + 1

    clusters.sort(key=lambda c: c[1], reverse=True)
    return [PriceCluster(value=v, strength=int(s)) for v, s in clusters]


def support_resistance(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    tolerance: float = 0.0005,
    lookback: int = 20,
) -> SupportResistance:
    """
    Find the strongest support and resistance around the latest close.

    Support is the strongest low-price cluster below the close, falling
    back to the window's lowest low (if below the close) and then to 0.5%
    under the close. Resistance mirrors this on highs at or above the
    close. Fewer than ``lookback`` candles use the 0.5% offsets directly.
    """
    close = _last(closes)
    n = min(len(highs), len(lows))
    fallback = SupportResistance(
        support=close * (1 - SR_FALLBACK_PCT),
        resistance=close * (1 + SR_FALLBACK_PCT),
    )
    if lookback <= 0 or n < lookback:
        return fallback

    recent_lows = [float(v) for v in lows[-lookback:]]
    recent_highs = [float(v) for v in highs[-lookback:]]

    support = next(
        (c.value for c in price_clusters(recent_lows, tolerance) if c.value < close),
        None,
    )
    if support is None:
        lowest = min(recent_lows)
        support = lowest if lowest < close else fallback.support

    resistance = next(
        (c.value for c in price_clusters(recent_highs, tolerance) if c.value >= close),
        None,
    )
    if resistance is None:
        highest = max(recent_highs)
        resistance = highest if highest >= close else fallback.resistance

    return SupportResistance(support=support, resistance=resistance)


# =============================================================================
# IndicatorCalculator class
# =============================================================================

class IndicatorCalculator:
    """Calculator for every indicator the signal engine needs."""

    def __init__(self, config: StrategyConfig | None = None):
        self.config = config or StrategyConfig()

    def snapshot(self, series: CandleSeries) -> IndicatorSnapshot:
        """
        Calculate indicators as of the latest candle of ``series``.

        Args:
            series: Oldest-first candles (any length, including empty)

        Returns:
            IndicatorSnapshot with fallbacks applied where history is short
        """
        cfg = self.config
        closes = series.get_closes()
        highs = series.get_highs()
        lows = series.get_lows()
        volumes = series.get_volumes()
        price = _last(closes)

        rsi_values = rsi_series(closes, cfg.rsi_period)
        atr_value = atr(highs, lows, closes, cfg.atr_period)

        return IndicatorSnapshot(
            price=price,
            rsi=rsi_values[-1] if rsi_values else 50.0,
            macd=macd(closes, cfg.macd_fast, cfg.macd_slow, cfg.macd_signal),
            ema9=ema(closes, cfg.ema_short),
            ema21=ema(closes, cfg.ema_long),
            sma50=sma(closes, cfg.sma_period),
            bollinger=bollinger_bands(closes, cfg.bb_period, cfg.bb_std_dev),
            atr=atr_value,
            volatility_pct=volatility_pct(atr_value, price),
            volume=volume_analysis(
                volumes,
                closes,
                period=cfg.volume_strength_period,
                profile_period=cfg.volume_period,
            ),
            divergence=rsi_divergence(closes, rsi_values, cfg.divergence_lookback),
            support_resistance=support_resistance(
                highs, lows, closes, cfg.sr_tolerance, cfg.sr_lookback
            ),
        )

