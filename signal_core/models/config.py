"""Strategy configuration model."""

from __future__ import annotations

from pydantic import Field, model_validator

from signal_core.models.base import CamelModel


class StrategyConfig(CamelModel):
    """Indicator periods, thresholds and risk parameters.

    Invalid values fail at construction with a pydantic ValidationError;
    nothing downstream re-checks them.
    """

    # Indicator periods
    rsi_period: int = Field(default=14, gt=0)
    rsi_overbought: float = Field(default=70.0, gt=0, le=100)
    rsi_oversold: float = Field(default=30.0, ge=0, lt=100)
    macd_fast: int = Field(default=12, gt=0)
    macd_slow: int = Field(default=26, gt=0)
    macd_signal: int = Field(default=9, gt=0)
    ema_short: int = Field(default=9, gt=0)
    ema_long: int = Field(default=21, gt=0)
    sma_period: int = Field(default=50, gt=0)
    bb_period: int = Field(default=20, gt=0)
    bb_std_dev: float = Field(default=2.0, gt=0)
    atr_period: int = Field(default=14, gt=0)

    # Volume (ratio/trend window and strength/agreement window)
    volume_period: int = Field(default=20, gt=0)
    volume_strength_period: int = Field(default=14, gt=1)

    # Divergence and support/resistance
    divergence_lookback: int = Field(default=5, gt=1)
    sr_lookback: int = Field(default=20, gt=0)
    sr_tolerance: float = Field(default=0.0005, gt=0)

    # Decision and risk
    minimum_signal_strength: float = Field(default=70.0, ge=0, le=100)
    risk_pct_per_trade: float = Field(default=0.02, gt=0, lt=1)

    @model_validator(mode="after")
    def _check_ordering(self) -> StrategyConfig:
        if self.rsi_oversold >= self.rsi_overbought:
            raise ValueError("rsi_oversold must be below rsi_overbought")
        if self.macd_fast >= self.macd_slow:
            raise ValueError("macd_fast must be shorter than macd_slow")
        if self.ema_short >= self.ema_long:
            raise ValueError("ema_short must be shorter than ema_long")
        return self
