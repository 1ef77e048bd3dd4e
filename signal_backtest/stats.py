"""Statistics calculator for backtest results.

Computes win rate, profit factor, maximum drawdown, return and a
per-direction breakdown from the closed trades and the equity curve.

Conventions:
- win_rate = wins / total trades * 100 (0 without trades)
- profit_factor = gross profit / max(|gross loss|, 1)
- max_drawdown = largest (peak - value) / peak * 100 over the curve,
  starting from the initial balance; clamped to [0, 100]
"""

from __future__ import annotations

import logging
from typing import Sequence

from pydantic import Field

from signal_core.models import (
    CamelModel,
    ClosedTrade,
    Direction,
    EquityPoint,
    TradeResult,
)

logger = logging.getLogger(__name__)


class DirectionStats(CamelModel):
    direction: Direction
    total: int = 0
    wins: int = 0
    losses: int = 0
    net_profit: float = 0.0
    win_rate: float = 0.0


class BacktestResult(CamelModel):
    """Complete backtest results."""

    initial_balance: float
    final_balance: float
    trades: list[ClosedTrade] = Field(default_factory=list)
    equity: list[EquityPoint] = Field(default_factory=list)

    # Overall
    win_rate: float = 0.0
    profit_factor: float = 0.0
    max_drawdown: float = 0.0
    total_trades: int = 0
    wins: int = 0
    losses: int = 0
    net_profit: float = 0.0
    return_pct: float = 0.0

    # Breakdowns
    by_direction: list[DirectionStats] = Field(default_factory=list)


def profit_factor(trades: Sequence[ClosedTrade]) -> float:
    """Gross profit over gross loss, with the divisor floored at 1."""
    gross_profit = sum(t.profit for t in trades if t.profit > 0)
    gross_loss = sum(t.profit for t in trades if t.profit < 0)
    return gross_profit / max(abs(gross_loss), 1.0)


def max_drawdown(values: Sequence[float]) -> float:
    """Largest peak-to-trough decline in percent of the running peak."""
    if not values:
        return 0.0

    peak = values[0]
    worst = 0.0
    for value in values:
        if value > peak:
            peak = value
        if peak <= 0:
            continue
        worst = max(worst, (peak - value) / peak * 100)

    return min(100.0, max(0.0, worst))


class StatisticsCalculator:
    """Calculate backtest statistics."""

    def calculate(
        self,
        initial_balance: float,
        final_balance: float,
        trades: list[ClosedTrade],
        equity: list[EquityPoint],
    ) -> BacktestResult:
        total = len(trades)
        wins = sum(1 for t in trades if t.result == TradeResult.WIN)
        losses = sum(1 for t in trades if t.result == TradeResult.LOSS)
        net_profit = final_balance - initial_balance

        return BacktestResult(
            initial_balance=initial_balance,
            final_balance=final_balance,
            trades=trades,
            equity=equity,
            win_rate=(wins / total * 100) if total > 0 else 0.0,
            profit_factor=profit_factor(trades),
            max_drawdown=max_drawdown(
                [initial_balance] + [p.value for p in equity]
            ),
            total_trades=total,
            wins=wins,
            losses=losses,
            net_profit=net_profit,
            return_pct=(net_profit / initial_balance * 100) if initial_balance else 0.0,
            by_direction=self._calc_by_direction(trades),
        )

    def _calc_by_direction(self, trades: list[ClosedTrade]) -> list[DirectionStats]:
        groups: dict[Direction, dict] = {}
        for trade in trades:
            stats = groups.setdefault(
                trade.direction,
                {"total": 0, "wins": 0, "losses": 0, "net_profit": 0.0},
            )
            stats["total"] += 1
            stats["net_profit"] += trade.profit
            if trade.result == TradeResult.WIN:
                stats["wins"] += 1
            else:
                stats["losses"] += 1

        return [
            DirectionStats(
                direction=direction,
                win_rate=stats["wins"] / stats["total"] * 100,
                **stats,
            )
            for direction, stats in sorted(groups.items(), key=lambda kv: kv[0].value)
        ]
