"""Candle-based exit detection for open positions.

Rules:
- BUY: low <= stop_loss → LOSS, high >= take_profit → WIN
- SELL: high >= stop_loss → LOSS, low <= take_profit → WIN
- Both hit on the same candle → LOSS (pessimistic, stop checked first)
- Exits fill exactly at the stop or target price
"""

from __future__ import annotations

import logging

from signal_core.models import Candle, ClosedTrade, Direction, Trade, TradeResult

logger = logging.getLogger(__name__)


def check_exit(trade: Trade, candle: Candle) -> tuple[float, TradeResult] | None:
    """Check whether ``candle`` reaches the trade's stop or target.

    Returns:
        Tuple of (exit_price, result), or None if the trade stays open
    """
    if trade.direction == Direction.BUY:
        sl_hit = candle.low <= trade.stop_loss
        tp_hit = candle.high >= trade.take_profit
    else:
        sl_hit = candle.high >= trade.stop_loss
        tp_hit = candle.low <= trade.take_profit

    if sl_hit:
        return trade.stop_loss, TradeResult.LOSS
    if tp_hit:
        return trade.take_profit, TradeResult.WIN
    return None


class PositionTracker:
    """Hold at most one open position and resolve it against candles."""

    def __init__(self):
        self._position: Trade | None = None
        self._closed: list[ClosedTrade] = []

    @property
    def position(self) -> Trade | None:
        return self._position

    @property
    def is_open(self) -> bool:
        return self._position is not None

    @property
    def closed_trades(self) -> list[ClosedTrade]:
        return list(self._closed)

    def open(self, trade: Trade) -> None:
        """Open a position; only one may be open at a time."""
        if self._position is not None:
            raise RuntimeError("a position is already open")
        self._position = trade

    def check_candle(self, candle: Candle) -> ClosedTrade | None:
        """Close the open position if ``candle`` hits its stop or target."""
        if self._position is None:
            return None

        hit = check_exit(self._position, candle)
        if hit is None:
            return None

        exit_price, result = hit
        return self._close(exit_price, candle, result)

    def force_close(self, candle: Candle) -> ClosedTrade | None:
        """Close the open position at ``candle.close``; WIN only if profitable."""
        if self._position is None:
            return None
        return self._close(candle.close, candle, None)

    def unrealized_pnl(self, price: float) -> float:
        if self._position is None:
            return 0.0
        return self._position.pnl_at(price)

    def _close(
        self,
        exit_price: float,
        candle: Candle,
        result: TradeResult | None,
    ) -> ClosedTrade:
        closed = self._position.close(exit_price, candle.timestamp, result)
        self._position = None
        self._closed.append(closed)
        logger.debug(
            f"Closed {closed.direction.value} @ {exit_price} "
            f"({closed.result.value}, profit={closed.profit:.4f})"
        )
        return closed
