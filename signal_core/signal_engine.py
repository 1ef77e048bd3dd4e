"""Signal decision engine.

Combines indicator readings, a sentiment score and optional
higher-timeframe trends into a directional Signal with risk levels.

This module is pure business logic with no I/O dependencies; the same
engine drives the backtest and any live consumer.

Scoring:
- Every indicator adds a weighted bullish or bearish contribution
  (0, 50 or 100 points times its weight) to ``buy_score``/``sell_score``
- Volume confirmation goes to whichever side already leads
- ATR volatility above 1.5% amplifies both scores, below 0.5% dampens them
- The leading side wins; below ``minimum_signal_strength`` the result is NEUTRAL
"""

import logging
from dataclasses import dataclass

from signal_core.indicators import IndicatorCalculator, volatility_description
from signal_core.models import (
    CandleSeries,
    Direction,
    IndicatorSnapshot,
    Signal,
    StrategyConfig,
    TimeframeTrends,
    TrendBias,
    VolumeTrend,
)

logger = logging.getLogger(__name__)

# Indicator weights (sum to 1.0)
RSI_WEIGHT = 0.25
MACD_WEIGHT = 0.20
EMA_WEIGHT = 0.15
SMA_WEIGHT = 0.10
VOLUME_WEIGHT = 0.20
SENTIMENT_WEIGHT = 0.10

# Distance inside the overbought/oversold bands that still scores half
RSI_APPROACH_MARGIN = 10.0

VOLUME_CONFIRM_RATIO = 1.2
SENTIMENT_THRESHOLD = 0.1

# Volatility bands (ATR as % of price)
HIGH_VOLATILITY_PCT = 1.5
LOW_VOLATILITY_PCT = 0.5
LOW_VOLATILITY_DAMPING = 0.9

# Dynamic stop/target multipliers (in ATRs, before volatility scaling)
STOP_ATR_MULT = 1.5
TP_ATR_MULT = 2.5

# Higher timeframes that must agree for a confirmation
TIMEFRAME_CONFIRMATIONS = 2


@dataclass
class Evaluation:
    """Full result of one evaluation.

    Attributes:
        signal: The Signal returned by ``evaluate``.
        snapshot: Indicator values the decision was based on.
        buy_score: Final (volatility-adjusted) bullish score.
        sell_score: Final (volatility-adjusted) bearish score.
        volatility_description: Human-readable volatility band.
    """

    signal: Signal
    snapshot: IndicatorSnapshot
    buy_score: float
    sell_score: float
    volatility_description: str


class SignalEngine:
    """
    Turn a candle window into a BUY, SELL or NEUTRAL signal.

    Risk management for actionable signals:
    - volatility factor = ATR / price
    - stop distance = ATR x 1.5 x (1 + factor)
    - target distance = ATR x 2.5 x (1 + factor / 2)
    - position size = balance x risk_pct_per_trade / stop distance

    Volume anomalies, divergence and support/resistance are reported in
    the snapshot but do not contribute to either score.
    """

    def __init__(self, config: StrategyConfig | None = None):
        self.config = config or StrategyConfig()
        self.indicator_calc = IndicatorCalculator(self.config)

    # =========================================================================
    # Scoring
    # =========================================================================

    def score(
        self,
        snapshot: IndicatorSnapshot,
        sentiment_score: float = 0.0,
    ) -> tuple[float, float, list[str]]:
        """
        Score a snapshot on both sides.

        Returns:
            Tuple of (buy_score, sell_score, reasons)
        """
        cfg = self.config
        buy_score = 0.0
        sell_score = 0.0
        reasons: list[str] = []

        # RSI
        rsi_value = snapshot.rsi
        if rsi_value < cfg.rsi_oversold:
            buy_score += 100 * RSI_WEIGHT
            reasons.append(f"RSI oversold ({rsi_value:.2f})")
        elif rsi_value > cfg.rsi_overbought:
            sell_score += 100 * RSI_WEIGHT
            reasons.append(f"RSI overbought ({rsi_value:.2f})")
        elif rsi_value < cfg.rsi_oversold + RSI_APPROACH_MARGIN:
            buy_score += 50 * RSI_WEIGHT
            reasons.append(f"RSI approaching oversold ({rsi_value:.2f})")
        elif rsi_value > cfg.rsi_overbought - RSI_APPROACH_MARGIN:
            sell_score += 50 * RSI_WEIGHT
            reasons.append(f"RSI approaching overbought ({rsi_value:.2f})")

        # MACD
        hist = snapshot.macd.histogram
        if hist > 0 and hist > snapshot.macd.signal:
            buy_score += 100 * MACD_WEIGHT
            reasons.append("MACD histogram positive and increasing")
        elif hist < 0 and hist < snapshot.macd.signal:
            sell_score += 100 * MACD_WEIGHT
            reasons.append("MACD histogram negative and decreasing")
        elif hist > 0:
            buy_score += 50 * MACD_WEIGHT
            reasons.append("MACD histogram positive")
        elif hist < 0:
            sell_score += 50 * MACD_WEIGHT
            reasons.append("MACD histogram negative")

        # EMA crossover
        if snapshot.ema9 > snapshot.ema21:
            buy_score += 100 * EMA_WEIGHT
            reasons.append("EMA9 above EMA21 (bullish)")
        elif snapshot.ema9 < snapshot.ema21:
            sell_score += 100 * EMA_WEIGHT
            reasons.append("EMA9 below EMA21 (bearish)")

        # Trend
        if snapshot.price > snapshot.sma50:
            buy_score += 100 * SMA_WEIGHT
            reasons.append("Price above SMA50 (bullish trend)")
        elif snapshot.price < snapshot.sma50:
            sell_score += 100 * SMA_WEIGHT
            reasons.append("Price below SMA50 (bearish trend)")

        # Volume confirms whichever side leads so far
        volume = snapshot.volume
        if volume.ratio > VOLUME_CONFIRM_RATIO and volume.trend == VolumeTrend.INCREASING:
            if buy_score > sell_score:
                buy_score += 100 * VOLUME_WEIGHT
                reasons.append(
                    f"Increasing volume ({volume.ratio:.2f}x avg) confirms bullish momentum"
                )
            elif sell_score > buy_score:
                sell_score += 100 * VOLUME_WEIGHT
                reasons.append(
                    f"Increasing volume ({volume.ratio:.2f}x avg) confirms bearish momentum"
                )

        # Sentiment
        if sentiment_score > SENTIMENT_THRESHOLD:
            buy_score += 100 * SENTIMENT_WEIGHT
            reasons.append(f"Positive market sentiment ({sentiment_score:.2f})")
        elif sentiment_score < -SENTIMENT_THRESHOLD:
            sell_score += 100 * SENTIMENT_WEIGHT
            reasons.append(f"Negative market sentiment ({sentiment_score:.2f})")

        # Volatility
        vol_pct = snapshot.volatility_pct
        if vol_pct > HIGH_VOLATILITY_PCT:
            multiplier = 1 + (vol_pct - HIGH_VOLATILITY_PCT) * 0.1
            buy_score *= multiplier
            sell_score *= multiplier
            reasons.append(f"High volatility ({vol_pct:.2f}%) amplifies signal strength")
        elif vol_pct < LOW_VOLATILITY_PCT:
            buy_score *= LOW_VOLATILITY_DAMPING
            sell_score *= LOW_VOLATILITY_DAMPING
            reasons.append(f"Low volatility ({vol_pct:.2f}%) reduces signal reliability")

        return buy_score, sell_score, reasons

    # =========================================================================
    # Risk
    # =========================================================================

    def calculate_levels(
        self,
        direction: Direction,
        price: float,
        atr_value: float,
    ) -> tuple[float, float, float]:
        """
        Calculate stop loss and take profit around ``price``.

        Returns:
            Tuple of (stop_loss, take_profit, risk_reward_ratio)
        """
        volatility_factor = atr_value / price if price > 0 else 0.0
        stop_distance = atr_value * STOP_ATR_MULT * (1 + volatility_factor)
        tp_distance = atr_value * TP_ATR_MULT * (1 + volatility_factor * 0.5)

        if direction == Direction.BUY:
            stop_loss = price - stop_distance
            take_profit = price + tp_distance
        else:
            stop_loss = price + stop_distance
            take_profit = price - tp_distance

        risk = abs(price - stop_loss)
        reward = abs(price - take_profit)
        risk_reward = reward / risk if risk > 0 else 0.0
        return stop_loss, take_profit, risk_reward

    def position_size(self, price: float, stop_loss: float, account_balance: float) -> float:
        """Units risking ``risk_pct_per_trade`` of the balance; 0 when risk is zero."""
        risk_per_unit = abs(price - stop_loss)
        if risk_per_unit <= 0:
            return 0.0
        return account_balance * self.config.risk_pct_per_trade / risk_per_unit

    # =========================================================================
    # Evaluation
    # =========================================================================

    @staticmethod
    def _timeframe_reason(direction: Direction, trends: TimeframeTrends) -> str:
        bias = TrendBias.BULLISH if direction == Direction.BUY else TrendBias.BEARISH
        side = "Buy" if direction == Direction.BUY else "Sell"
        confirmations = trends.count(bias)
        if confirmations >= TIMEFRAME_CONFIRMATIONS:
            return f"{side} signal confirmed on {confirmations} higher timeframes"
        return f"Warning: {side} signal not confirmed on higher timeframes"

    def analyze(
        self,
        series: CandleSeries,
        sentiment_score: float = 0.0,
        trends: TimeframeTrends | None = None,
        account_balance: float = 1000.0,
    ) -> Evaluation:
        """
        Evaluate the latest candle and keep the intermediate values.

        Args:
            series: Oldest-first candle window
            sentiment_score: Sentiment in [-1, 1]
            trends: Optional 5m/15m/30m trend hints (informational reasons only)
            account_balance: Balance used for position sizing

        Returns:
            Evaluation with the Signal, snapshot and both scores
        """
        snapshot = self.indicator_calc.snapshot(series)
        buy_score, sell_score, reasons = self.score(snapshot, sentiment_score)

        direction = Direction.BUY if buy_score > sell_score else Direction.SELL
        strength = min(100.0, max(0.0, max(buy_score, sell_score)))
        threshold = self.config.minimum_signal_strength

        if strength < threshold:
            reasons.append(
                f"Signal strength {strength:.2f} below minimum threshold {threshold:.2f}"
            )
            signal = Signal(
                direction=Direction.NEUTRAL,
                confidence=strength,
                reasons=reasons,
            )
            logger.debug(
                f"NEUTRAL {series.symbol or 'series'}: "
                f"buy={buy_score:.2f} sell={sell_score:.2f} < {threshold}"
            )
        else:
            if trends is not None:
                reasons.append(self._timeframe_reason(direction, trends))

            price = snapshot.price
            stop_loss, take_profit, risk_reward = self.calculate_levels(
                direction, price, snapshot.atr
            )
            signal = Signal(
                direction=direction,
                confidence=strength,
                reasons=reasons,
                stop_loss=stop_loss,
                take_profit=take_profit,
                risk_reward_ratio=risk_reward,
                position_size=self.position_size(price, stop_loss, account_balance),
            )
            logger.debug(
                f"{direction.value} {series.symbol or 'series'} @ {price} "
                f"confidence={strength:.2f} SL={stop_loss} TP={take_profit}"
            )

        return Evaluation(
            signal=signal,
            snapshot=snapshot,
            buy_score=buy_score,
            sell_score=sell_score,
            volatility_description=volatility_description(snapshot.volatility_pct),
        )

    def evaluate(
        self,
        series: CandleSeries,
        sentiment_score: float = 0.0,
        trends: TimeframeTrends | None = None,
        account_balance: float = 1000.0,
    ) -> Signal:
        """Evaluate the latest candle of ``series`` and return only the Signal."""
        return self.analyze(series, sentiment_score, trends, account_balance).signal


def evaluate(
    series: CandleSeries,
    sentiment_score: float = 0.0,
    trends: TimeframeTrends | None = None,
    config: StrategyConfig | None = None,
) -> Signal:
    """One-shot evaluation with a throwaway engine."""
    return SignalEngine(config).evaluate(series, sentiment_score, trends)
