"""Tests for strategy and backtest configuration."""

import pytest
from pydantic import ValidationError

import signal_backtest.config as config_module
from signal_core.models import StrategyConfig
from signal_backtest.config import (
    BacktestConfig,
    BacktestSettings,
    get_backtest_settings,
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Reset the cached settings so env changes are picked up."""
    monkeypatch.setattr(config_module, "_settings", None)


class TestStrategyConfig:
    def test_defaults(self):
        config = StrategyConfig()
        assert config.rsi_period == 14
        assert (config.macd_fast, config.macd_slow, config.macd_signal) == (12, 26, 9)
        assert (config.ema_short, config.ema_long) == (9, 21)
        assert config.minimum_signal_strength == 70.0
        assert config.risk_pct_per_trade == 0.02

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"rsi_period": 0},
            {"atr_period": -1},
            {"rsi_oversold": 70.0, "rsi_overbought": 70.0},
            {"macd_fast": 26, "macd_slow": 12},
            {"ema_short": 21, "ema_long": 21},
            {"minimum_signal_strength": 120.0},
            {"risk_pct_per_trade": 0.0},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            StrategyConfig(**kwargs)

    def test_camel_case_aliases(self):
        config = StrategyConfig.model_validate({"rsiPeriod": 10, "minimumSignalStrength": 60})
        assert config.rsi_period == 10
        assert config.minimum_signal_strength == 60.0


class TestBacktestConfig:
    def test_defaults(self):
        config = BacktestConfig()
        assert config.initial_balance == 1000.0
        assert config.risk_pct == 0.02
        assert config.entry_threshold == 70.0
        assert config.window_size == 100
        assert config.warmup == 50
        assert config.use_timeframe_trends is False
        assert config.strategy == StrategyConfig()

    def test_strategy_uses_run_risk_pct(self):
        config = BacktestConfig(risk_pct=0.05, strategy=StrategyConfig(rsi_period=7, risk_pct_per_trade=0.01))
        assert config.strategy.risk_pct_per_trade == 0.05
        assert config.strategy.rsi_period == 7

        assert BacktestConfig(risk_pct=0.03).strategy.risk_pct_per_trade == 0.03

    def test_camel_case_strategy_uses_run_risk_pct(self):
        config = BacktestConfig.model_validate(
            {"riskPct": 0.04, "strategy": {"riskPctPerTrade": 0.01, "rsiPeriod": 10}}
        )
        assert config.strategy.risk_pct_per_trade == 0.04
        assert config.strategy.rsi_period == 10

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"initial_balance": 0},
            {"risk_pct": 1.5},
            {"entry_threshold": 101},
            {"window_size": 0},
            {"warmup": -1},
            {"sentiment_score": 2.0},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            BacktestConfig(**kwargs)


class TestBacktestSettings:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("SIGNAL_BACKTEST_INITIAL_BALANCE", "5000")
        monkeypatch.setenv("SIGNAL_BACKTEST_ENTRY_THRESHOLD", "60")
        monkeypatch.setenv("SIGNAL_BACKTEST_USE_TIMEFRAME_TRENDS", "true")

        settings = BacktestSettings()

        assert settings.initial_balance == 5000.0
        assert settings.entry_threshold == 60.0
        assert settings.use_timeframe_trends is True

    def test_to_config_applies_overrides(self):
        settings = BacktestSettings(initial_balance=2000.0, minimum_signal_strength=65.0)

        config = settings.to_config(risk_pct=0.01, warmup=None)

        assert config.initial_balance == 2000.0
        assert config.risk_pct == 0.01
        assert config.warmup == 50
        assert config.strategy.minimum_signal_strength == 65.0
        assert config.strategy.risk_pct_per_trade == 0.01

    def test_to_config_validates(self):
        with pytest.raises(ValidationError):
            BacktestSettings().to_config(window_size=0)

    def test_explicit_strategy_wins(self):
        strategy = StrategyConfig(rsi_period=7)
        config = BacktestSettings().to_config(strategy=strategy)
        assert config.strategy.rsi_period == 7

    def test_settings_are_cached(self, monkeypatch):
        monkeypatch.setenv("SIGNAL_BACKTEST_WARMUP", "10")
        first = get_backtest_settings()
        monkeypatch.setenv("SIGNAL_BACKTEST_WARMUP", "20")
        assert get_backtest_settings() is first
        assert first.warmup == 10
