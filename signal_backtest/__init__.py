"""Backtesting system for the technical-indicator signal engine.

Fully independent of any live surface; only depends on signal_core/
for business logic. Candles come from JSON/CSV files or a seeded
synthetic generator.

Usage:
    python -m signal_backtest --input candles.csv
    python -m signal_backtest --synthetic 5000 --seed 42
"""

from signal_backtest.config import BacktestConfig
from signal_backtest.engine import BacktestSimulator
from signal_backtest.stats import BacktestResult

__all__ = ["BacktestConfig", "BacktestSimulator", "BacktestResult"]
