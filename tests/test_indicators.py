"""Tests for technical indicators."""

import math
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from signal_core.indicators import (
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
from signal_core.models import CandleSeries, VolumeTrend


def make_series(closes: list[float], spread: float = 0.5, volume: float = 1000.0) -> CandleSeries:
    """Build a 1m CandleSeries from closes with a fixed high/low spread."""
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return CandleSeries.from_records(
        {
            "timestamp": start + timedelta(minutes=i),
            "open": closes[i - 1] if i else c,
            "high": c + spread,
            "low": c - spread,
            "close": c,
            "volume": volume,
        }
        for i, c in enumerate(closes)
    )


class TestEMA:
    """Tests for EMA calculation."""

    def test_ema_series_seeded_with_sma(self):
        values = [float(i) for i in range(1, 11)]  # 1-10
        result = ema_series(values, 5)

        assert len(result) == 10
        assert math.isnan(result[0])
        assert math.isnan(result[3])
        # 5th value is the mean of the first 5 = 3
        assert result[4] == pytest.approx(3.0)
        # Next: (6 - 3) * 2/6 + 3 = 4
        assert result[5] == pytest.approx(4.0)

    def test_ema_insufficient_data_returns_last_value(self):
        assert ema([100.0, 101.0, 102.0], 10) == 102.0

    def test_ema_empty(self):
        assert ema([], 9) == 0.0

    def test_ema_constant_series_converges(self):
        values = [42.5] * 60
        assert ema(values, 10) == pytest.approx(42.5, abs=1e-9)

    def test_ema_follows_new_level(self):
        values = [100.0] * 10 + [110.0] * 50
        assert ema(values, 9) == pytest.approx(110.0, abs=1e-3)


class TestSMA:
    """Tests for SMA calculation."""

    def test_sma_trailing_window(self):
        values = [float(i) for i in range(1, 11)]
        assert sma(values, 3) == pytest.approx(9.0)

    def test_sma_insufficient_data_returns_last_value(self):
        assert sma([1.0, 2.0], 5) == 2.0


class TestRSI:
    """Tests for Wilder RSI."""

    def test_rsi_insufficient_data_is_neutral(self):
        assert rsi([100.0] * 14, 14) == 50.0

    def test_rsi_flat_prices_is_not_nan(self):
        """No movement: avg loss is zero, so RSI resolves to 100."""
        value = rsi([100.0] * 20, 14)
        assert not math.isnan(value)
        assert value == 100.0

    def test_rsi_all_gains_is_100(self):
        closes = [100.0 + i for i in range(30)]
        assert rsi(closes, 14) == 100.0

    def test_rsi_all_losses_is_0(self):
        closes = [100.0 - i for i in range(30)]
        assert rsi(closes, 14) == pytest.approx(0.0)

    def test_rsi_wilder_smoothing(self):
        # Seed: gain 0.5, loss 0.5 → 50
        assert rsi([1.0, 2.0, 1.0], 2) == pytest.approx(50.0)
        # Next +1: gain (0.5 + 1) / 2 = 0.75, loss 0.25 → RS 3 → 75
        assert rsi([1.0, 2.0, 1.0, 2.0], 2) == pytest.approx(75.0)

    def test_rsi_bounded_for_random_walk(self):
        rng = np.random.default_rng(3)
        closes = list(100 + np.cumsum(rng.normal(0, 1, 300)))
        values = rsi_series(closes, 14)
        assert len(values) == len(closes)
        assert all(0.0 <= v <= 100.0 for v in values)

    def test_rsi_series_prefix_is_neutral(self):
        values = rsi_series([float(i) for i in range(20)], 14)
        assert values[:14] == [50.0] * 14
        assert values[14] == 100.0


class TestMACD:
    """Tests for MACD."""

    def test_macd_insufficient_data_is_zero(self):
        result = macd([100.0] * 34, 12, 26, 9)
        assert (result.macd, result.signal, result.histogram) == (0.0, 0.0, 0.0)

    def test_macd_flat_prices(self):
        result = macd([100.0] * 60)
        assert result.macd == pytest.approx(0.0)
        assert result.signal == pytest.approx(0.0)
        assert result.histogram == pytest.approx(0.0)

    def test_macd_uptrend_is_positive(self):
        result = macd([100.0 + i * 0.5 for i in range(60)])
        assert result.macd > 0
        assert result.signal > 0
        assert result.histogram == pytest.approx(result.macd - result.signal)

    def test_macd_line_matches_ema_difference(self):
        closes = [100.0 + math.sin(i / 3) for i in range(80)]
        result = macd(closes)
        assert result.macd == pytest.approx(ema(closes, 12) - ema(closes, 26))


class TestBollingerBands:
    """Tests for Bollinger Bands."""

    def test_middle_equals_sma(self):
        closes = [100.0 + math.cos(i) for i in range(40)]
        bands = bollinger_bands(closes, 20, 2.0)
        assert bands.middle == sma(closes, 20)

    def test_width_is_twice_k_stddev(self):
        closes = [100.0 + (i % 5) for i in range(40)]
        bands = bollinger_bands(closes, 20, 2.5)
        std = float(np.std(closes[-20:]))
        assert bands.upper - bands.lower == pytest.approx(2 * 2.5 * std)

    def test_fallback_envelope(self):
        bands = bollinger_bands([100.0] * 5, 20)
        assert bands.upper == pytest.approx(102.0)
        assert bands.middle == pytest.approx(100.0)
        assert bands.lower == pytest.approx(98.0)

    def test_empty(self):
        bands = bollinger_bands([], 20)
        assert (bands.upper, bands.middle, bands.lower) == (0.0, 0.0, 0.0)


class TestATR:
    """Tests for True Range and ATR."""

    def test_true_range_uses_previous_close(self):
        highs = [101.0, 103.0]
        lows = [99.0, 102.0]
        closes = [100.0, 102.5]
        # Second candle: max(1, |103 - 100|, |102 - 100|) = 3
        assert true_range(highs, lows, closes) == pytest.approx([2.0, 3.0])

    def test_atr_constant_range(self):
        highs = [102.0] * 20
        lows = [100.0] * 20
        closes = [101.0] * 20
        assert atr(highs, lows, closes, 14) == pytest.approx(2.0)

    def test_atr_insufficient_data(self):
        assert atr([102.0] * 14, [100.0] * 14, [101.0] * 14, 14) == ATR_FALLBACK

    def test_atr_never_negative(self):
        rng = np.random.default_rng(11)
        closes = list(100 + np.cumsum(rng.normal(0, 1, 100)))
        highs = [c + abs(x) for c, x in zip(closes, rng.normal(0, 1, 100))]
        lows = [c - abs(x) for c, x in zip(closes, rng.normal(0, 1, 100))]
        assert atr(highs, lows, closes, 14) >= 0


class TestVolatility:
    """Tests for ATR-based volatility."""

    def test_volatility_pct(self):
        assert volatility_pct(0.5, 100.0) == pytest.approx(0.5)
        assert volatility_pct(1.0, 0.0) == 0.0

    @pytest.mark.parametrize(
        "pct,expected",
        [
            (0.1, "Very low"),
            (0.3, "Low"),
            (0.6, "Below average"),
            (1.0, "Average"),
            (1.5, "Above average"),
            (2.0, "High"),
            (3.0, "Very high"),
        ],
    )
    def test_volatility_description(self, pct, expected):
        assert volatility_description(pct) == expected


class TestVolume:
    """Tests for volume profile and volume analysis."""

    def test_volume_profile_spike(self):
        profile = volume_profile([1000.0] * 19 + [2000.0], 20)
        assert profile["average"] == pytest.approx(1050.0)
        assert profile["ratio"] == pytest.approx(2000 / 1050)
        assert profile["trend"] == VolumeTrend.INCREASING
        assert profile["anomaly"] is True
        assert profile["anomaly_score"] == pytest.approx(1.0)

    def test_volume_profile_drop(self):
        profile = volume_profile([1000.0] * 19 + [500.0], 20)
        assert profile["trend"] == VolumeTrend.DECREASING

    def test_volume_profile_zero_volume(self):
        profile = volume_profile([0.0] * 20, 20)
        assert profile["ratio"] == 1.0
        assert profile["trend"] == VolumeTrend.STABLE
        assert profile["anomaly"] is False

    def test_volume_strength_constant_volume(self):
        result = volume_analysis([1000.0] * 20, [100.0] * 20, 14)
        assert result.strength == pytest.approx(50.0)
        assert result.price_volume_correlation == 0.0

    def test_volume_strength_is_clamped(self):
        result = volume_analysis([10.0] * 13 + [10000.0], [100.0] * 14, 14)
        assert result.strength == 100.0

    def test_agreement_when_price_and_volume_rise(self):
        closes = [100.0 + i for i in range(14)]
        volumes = [1000.0 + 10 * i for i in range(14)]
        result = volume_analysis(volumes, closes, 14)
        assert result.price_volume_correlation == pytest.approx(1.0)

    def test_disagreement_when_volume_falls(self):
        closes = [100.0 + i for i in range(14)]
        volumes = [1000.0 - 10 * i for i in range(14)]
        result = volume_analysis(volumes, closes, 14)
        assert result.price_volume_correlation == pytest.approx(-1.0)

    def test_insufficient_data_fallback(self):
        result = volume_analysis([1000.0] * 5, [100.0] * 5, 14)
        assert result.strength == 50.0
        assert result.price_volume_correlation == 0.0


class TestDivergence:
    """Tests for RSI divergence."""

    def test_bullish_divergence(self):
        closes = [10.0, 9.0, 8.0, 9.0, 7.0]
        rsi_values = [30.0, 25.0, 20.0, 35.0, 28.0]
        result = rsi_divergence(closes, rsi_values, 5)
        assert result.bullish is True
        assert result.bearish is False

    def test_bearish_divergence(self):
        closes = [10.0, 11.0, 12.0, 11.0, 13.0]
        rsi_values = [70.0, 75.0, 80.0, 65.0, 72.0]
        result = rsi_divergence(closes, rsi_values, 5)
        assert result.bearish is True
        assert result.bullish is False

    def test_confirmed_low_is_not_divergence(self):
        closes = [10.0, 9.0, 8.0, 9.0, 7.0]
        rsi_values = [30.0, 25.0, 20.0, 35.0, 15.0]
        assert rsi_divergence(closes, rsi_values, 5).bullish is False

    def test_short_input(self):
        result = rsi_divergence([1.0, 2.0], [50.0, 60.0], 5)
        assert (result.bullish, result.bearish) == (False, False)


class TestSupportResistance:
    """Tests for price clustering and support/resistance."""

    def test_clusters_merge_nearby_points(self):
        clusters = price_clusters([1.2, 1.0002, 1.0, 1.0001], 0.0005)
        assert len(clusters) == 2
        assert clusters[0].strength == 3
        assert clusters[0].value == pytest.approx(1.0001)
        assert clusters[1].value == pytest.approx(1.2)
        assert clusters[1].strength == 1

    def test_clusters_sorted_by_strength(self):
        clusters = price_clusters([1.0, 2.0, 2.0, 3.0, 3.0, 3.0], 0.0005)
        assert [c.strength for c in clusters] == [3, 2, 1]

    def test_levels_around_close(self):
        highs = [101.0] * 20
        lows = [99.0] * 20
        closes = [100.0] * 20
        levels = support_resistance(highs, lows, closes, 0.0005, 20)
        assert levels.support == pytest.approx(99.0)
        assert levels.resistance == pytest.approx(101.0)
        assert levels.support < closes[-1] <= levels.resistance

    def test_short_data_falls_back_to_offsets(self):
        levels = support_resistance([101.0] * 5, [99.0] * 5, [100.0] * 5, 0.0005, 20)
        assert levels.support == pytest.approx(99.5)
        assert levels.resistance == pytest.approx(100.5)

    def test_close_above_all_highs(self):
        highs = [101.0] * 19 + [105.0]
        lows = [99.0] * 20
        closes = [100.0] * 19 + [106.0]
        levels = support_resistance(highs, lows, closes, 0.0005, 20)
        assert levels.resistance == pytest.approx(106.0 * 1.005)


class TestIndicatorCalculator:
    """Tests for the snapshot builder."""

    def test_snapshot_values(self):
        closes = [100.0 + math.sin(i / 4) * 2 for i in range(80)]
        snapshot = IndicatorCalculator().snapshot(make_series(closes))

        assert snapshot.price == closes[-1]
        assert 0 <= snapshot.rsi <= 100
        assert snapshot.ema9 == pytest.approx(ema(closes, 9))
        assert snapshot.ema21 == pytest.approx(ema(closes, 21))
        assert snapshot.sma50 == pytest.approx(sma(closes, 50))
        assert snapshot.bollinger.middle == pytest.approx(sma(closes, 20))
        assert snapshot.atr > 0
        assert snapshot.volatility_pct == pytest.approx(snapshot.atr / closes[-1] * 100)

    def test_snapshot_of_empty_series(self):
        snapshot = IndicatorCalculator().snapshot(CandleSeries())
        assert snapshot.rsi == 50.0
        assert snapshot.atr == ATR_FALLBACK
        assert snapshot.macd.histogram == 0.0
