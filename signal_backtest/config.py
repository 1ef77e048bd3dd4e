"""Backtest configuration.

``BacktestConfig`` holds the parameters of one run and is validated at
construction. ``BacktestSettings`` supplies their defaults from
environment variables (prefix ``SIGNAL_BACKTEST_``) or a ``.env`` file.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from signal_core.models import CamelModel, StrategyConfig

DEFAULT_RISK_PCT = 0.02


class BacktestConfig(CamelModel):
    """Parameters of one backtest run."""

    initial_balance: float = Field(default=1000.0, gt=0)
    # Also copied into strategy.risk_pct_per_trade
    risk_pct: float = Field(default=DEFAULT_RISK_PCT, gt=0, lt=1)
    # Signals must be strictly above this confidence to open a position
    entry_threshold: float = Field(default=70.0, ge=0, le=100)
    # Trailing candles handed to the signal engine per evaluation
    window_size: int = Field(default=100, gt=0)
    # First candle index the simulator processes
    warmup: int = Field(default=50, ge=0)
    sentiment_score: float = Field(default=0.0, ge=-1.0, le=1.0)
    use_timeframe_trends: bool = False
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)

    @model_validator(mode="before")
    @classmethod
    def _share_risk_pct(cls, data: Any) -> Any:
        """Size engine signals with the same risk fraction the simulator uses."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        risk_pct = data.get("risk_pct", data.get("riskPct", DEFAULT_RISK_PCT))
        strategy = data.get("strategy", {})
        if isinstance(strategy, StrategyConfig):
            strategy = strategy.model_dump()
        elif isinstance(strategy, dict):
            strategy = {k: v for k, v in strategy.items() if k != "riskPctPerTrade"}
        else:
            return data
        strategy["risk_pct_per_trade"] = risk_pct
        data["strategy"] = strategy
        return data


class BacktestSettings(BaseSettings):
    """Backtest defaults loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SIGNAL_BACKTEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    initial_balance: float = 1000.0
    risk_pct: float = DEFAULT_RISK_PCT
    entry_threshold: float = 70.0
    window_size: int = 100
    warmup: int = 50
    sentiment_score: float = 0.0
    use_timeframe_trends: bool = False
    minimum_signal_strength: float = 70.0

    def to_config(self, **overrides) -> BacktestConfig:
        """Build a validated BacktestConfig, applying keyword overrides."""
        values = {
            "initial_balance": self.initial_balance,
            "risk_pct": self.risk_pct,
            "entry_threshold": self.entry_threshold,
            "window_size": self.window_size,
            "warmup": self.warmup,
            "sentiment_score": self.sentiment_score,
            "use_timeframe_trends": self.use_timeframe_trends,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        values.setdefault(
            "strategy",
            StrategyConfig(minimum_signal_strength=self.minimum_signal_strength),
        )
        return BacktestConfig(**values)


_settings: BacktestSettings | None = None


def get_backtest_settings() -> BacktestSettings:
    """Get cached backtest settings instance."""
    global _settings
    if _settings is None:
        _settings = BacktestSettings()
    return _settings
