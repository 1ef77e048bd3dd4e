"""Backtest simulator.

Replays a candle series through a signal source, holding at most one
open position, and aggregates the realized trades into a BacktestResult.

Processing order for each candle index ``i`` from ``warmup`` on:
1. Check the open position against candle ``i`` (stop first, then target)
2. Without a position, evaluate the trailing window ending at ``i`` and
   open a trade at the close when confidence exceeds the entry threshold
3. Record equity: balance plus unrealized P&L at candle ``i``'s close

A position still open after the last candle is closed at the last close.
"""

from __future__ import annotations

import logging

from signal_core.aggregator import derive_timeframe_trends, trend_window_size
from signal_core.models import (
    CandleSeries,
    EquityPoint,
    TimeframeTrends,
    Trade,
)
from signal_core.protocol import SignalSource
from signal_core.signal_engine import SignalEngine

from signal_backtest.config import BacktestConfig
from signal_backtest.outcome import PositionTracker
from signal_backtest.stats import BacktestResult, StatisticsCalculator

logger = logging.getLogger(__name__)


class BacktestSimulator:
    """Single-symbol NoPosition → Open → NoPosition state machine."""

    def __init__(
        self,
        config: BacktestConfig | None = None,
        engine: SignalSource | None = None,
    ):
        self.config = config or BacktestConfig()
        self.engine = engine or SignalEngine(self.config.strategy)
        self._stats = StatisticsCalculator()

    def run(
        self,
        series: CandleSeries,
        sentiment_score: float | None = None,
        trends: TimeframeTrends | None = None,
    ) -> BacktestResult:
        """
        Run the backtest over ``series``.

        Args:
            series: Oldest-first candles
            sentiment_score: Overrides ``config.sentiment_score`` when given
            trends: Fixed higher-timeframe hints for every evaluation;
                ignored when ``config.use_timeframe_trends`` derives them
                from the trailing ``trend_window_size`` candles

        Returns:
            BacktestResult; a series no longer than the warm-up yields
            zero trades and an unchanged balance
        """
        cfg = self.config
        sentiment = cfg.sentiment_score if sentiment_score is None else sentiment_score

        balance = cfg.initial_balance
        tracker = PositionTracker()
        # Trends read a longer history than the scoring window
        trend_window = trend_window_size(cfg.strategy)
        equity: list[EquityPoint] = []

        for i in range(cfg.warmup, len(series)):
            candle = series[i]

            # Step 1: exits
            closed = tracker.check_candle(candle)
            if closed is not None:
                balance += closed.profit

            # Step 2: entries
            if not tracker.is_open:
                window = series.window(i, cfg.window_size)
                window_trends = (
                    derive_timeframe_trends(
                        series.window(i, trend_window), cfg.strategy
                    )
                    if cfg.use_timeframe_trends
                    else trends
                )
                signal = self.engine.evaluate(window, sentiment, window_trends, balance)

                if signal.is_actionable and signal.confidence > cfg.entry_threshold:
                    risk_per_unit = abs(candle.close - signal.stop_loss)
                    if risk_per_unit <= 0:
                        logger.debug(
                            f"Skipping {signal.direction.value} at {candle.timestamp}: "
                            f"zero risk per unit"
                        )
                    else:
                        tracker.open(
                            Trade(
                                direction=signal.direction,
                                entry_price=candle.close,
                                entry_time=candle.timestamp,
                                stop_loss=signal.stop_loss,
                                take_profit=signal.take_profit,
                                size=balance * cfg.risk_pct / risk_per_unit,
                                confidence=signal.confidence,
                            )
                        )
                        logger.debug(
                            f"Opened {signal.direction.value} @ {candle.close} "
                            f"SL={signal.stop_loss} TP={signal.take_profit} "
                            f"confidence={signal.confidence:.2f}"
                        )

            # Step 3: equity
            equity.append(
                EquityPoint(
                    timestamp=candle.timestamp,
                    value=balance + tracker.unrealized_pnl(candle.close),
                )
            )

        if tracker.is_open:
            closed = tracker.force_close(series[-1])
            balance += closed.profit

        result = self._stats.calculate(
            initial_balance=cfg.initial_balance,
            final_balance=balance,
            trades=tracker.closed_trades,
            equity=equity,
        )
        logger.info(
            f"Backtest {series.symbol or 'series'}: {result.total_trades} trades, "
            f"win rate {result.win_rate:.1f}%, "
            f"balance {cfg.initial_balance:.2f} → {balance:.2f}, "
            f"max drawdown {result.max_drawdown:.2f}%"
        )
        return result
