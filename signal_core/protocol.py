"""Signal source protocol.

Anything that turns a candle window into a ``Signal`` can drive the
backtest simulator: the real ``SignalEngine`` or a scripted test double.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from signal_core.models import CandleSeries, Signal, TimeframeTrends


# ---------------------------------------------------------------------------
# SignalSource Protocol
# ---------------------------------------------------------------------------
@runtime_checkable
class SignalSource(Protocol):
    """Protocol for signal producers consumed by the backtest.

    Implementations must be pure with respect to their inputs: the
    same window, sentiment and trends always yield the same Signal.
    """

    def evaluate(
        self,
        series: CandleSeries,
        sentiment_score: float = 0.0,
        trends: TimeframeTrends | None = None,
        account_balance: float = 1000.0,
    ) -> Signal:
        """Evaluate the latest candle of ``series``.

        Args:
            series: Oldest-first candle window; the last candle is "now".
            sentiment_score: Market sentiment in [-1, 1].
            trends: Optional higher-timeframe trend hints.
            account_balance: Balance used to size the proposed position.

        Returns:
            A BUY/SELL Signal with risk levels, or NEUTRAL.
        """
        ...
