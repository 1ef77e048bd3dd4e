"""Core shared logic for indicators, signal decisions, and models.

This package contains pure business logic with no I/O dependencies
(no network, file, or database access). It is shared between live
signal evaluation and the backtesting system (signal_backtest/).
"""
