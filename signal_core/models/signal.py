"""Signal and trade data models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import ConfigDict, Field

from signal_core.models.base import CamelModel


class Direction(str, Enum):
    """Signal / trade direction."""

    BUY = "BUY"
    SELL = "SELL"
    NEUTRAL = "NEUTRAL"

    @property
    def sign(self) -> int:
        """+1 for BUY, -1 for SELL, 0 for NEUTRAL."""
        if self is Direction.BUY:
            return 1
        if self is Direction.SELL:
            return -1
        return 0


class TradeResult(str, Enum):
    """Closed trade outcome."""

    WIN = "WIN"
    LOSS = "LOSS"


class TrendBias(str, Enum):
    """Trend read from a higher timeframe."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class TimeframeTrends(CamelModel):
    """Trend hints from the 5, 15 and 30 minute timeframes."""

    m5: TrendBias = TrendBias.NEUTRAL
    m15: TrendBias = TrendBias.NEUTRAL
    m30: TrendBias = TrendBias.NEUTRAL

    def count(self, bias: TrendBias) -> int:
        """Number of timeframes agreeing with ``bias``."""
        return sum(1 for t in (self.m5, self.m15, self.m30) if t == bias)


class Signal(CamelModel):
    """Directional trading signal produced by one evaluation.

    ``confidence`` is on a 0-100 scale. NEUTRAL signals carry zeroed
    risk fields.
    """

    direction: Direction
    confidence: float = Field(ge=0.0, le=100.0)
    reasons: list[str] = Field(default_factory=list)
    stop_loss: float = 0.0
    take_profit: float = 0.0
    risk_reward_ratio: float = 0.0
    position_size: float = 0.0

    @property
    def is_actionable(self) -> bool:
        return self.direction != Direction.NEUTRAL


class Trade(CamelModel):
    """Open position owned by the backtest simulator.

    Mutable while open; ``close()`` returns the immutable ClosedTrade.
    """

    model_config = ConfigDict(frozen=False)

    direction: Direction
    entry_price: float
    entry_time: datetime
    stop_loss: float
    take_profit: float
    size: float
    confidence: float = 0.0

    @property
    def risk_amount(self) -> float:
        """Get the risk amount (distance to stop loss)."""
        return abs(self.entry_price - self.stop_loss)

    @property
    def reward_amount(self) -> float:
        """Get the reward amount (distance to take profit)."""
        return abs(self.take_profit - self.entry_price)

    def pnl_at(self, price: float) -> float:
        """Profit or loss if the position were closed at ``price``."""
        return (price - self.entry_price) * self.size * self.direction.sign

    def close(
        self,
        exit_price: float,
        exit_time: datetime,
        result: TradeResult | None = None,
    ) -> ClosedTrade:
        """Realize the trade. Without an explicit result, profit > 0 is a WIN."""
        profit = self.pnl_at(exit_price)
        if result is None:
            result = TradeResult.WIN if profit > 0 else TradeResult.LOSS
        return ClosedTrade(
            **self.model_dump(),
            exit_price=exit_price,
            exit_time=exit_time,
            profit=profit,
            result=result,
        )


class ClosedTrade(CamelModel):
    """Immutable record of a realized trade."""

    direction: Direction
    entry_price: float
    entry_time: datetime
    stop_loss: float
    take_profit: float
    size: float
    confidence: float = 0.0
    exit_price: float
    exit_time: datetime
    profit: float
    result: TradeResult


class EquityPoint(CamelModel):
    timestamp: datetime
    value: float
