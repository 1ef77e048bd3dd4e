"""CLI entry point for the backtesting system.

Usage:
    python -m signal_backtest --input candles.csv --symbol EUR/USD
    python -m signal_backtest --synthetic 5000 --seed 42 --symbol GBP/USD
    python -m signal_backtest --input candles.json --signal-only
"""

import argparse
import logging
import sys

from signal_core.aggregator import derive_timeframe_trends, trend_window_size
from signal_core.signal_engine import SignalEngine

from signal_backtest.config import get_backtest_settings
from signal_backtest.data import generate_candles, load_candles
from signal_backtest.engine import BacktestSimulator
from signal_backtest.report import ReportFormatter

DEFAULT_SYNTHETIC_CANDLES = 2000


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m signal_backtest",
        description="Backtest the technical-indicator signal engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m signal_backtest --input candles.csv --symbol EUR/USD
  python -m signal_backtest --input newest_first.json --newest-first
  python -m signal_backtest --synthetic 5000 --seed 42 --sentiment 0.3
  python -m signal_backtest --input candles.json --signal-only
        """,
    )

    # Data source
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--input", "-i",
        type=str,
        default=None,
        help="Candle file (.json or .csv), oldest first unless --newest-first",
    )
    source.add_argument(
        "--synthetic",
        type=int,
        default=None,
        metavar="N",
        help=f"Generate N synthetic 1m candles (default when no --input: {DEFAULT_SYNTHETIC_CANDLES})",
    )
    parser.add_argument(
        "--newest-first",
        action="store_true",
        help="Input file lists the newest candle first",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for synthetic candles",
    )
    parser.add_argument(
        "--symbol",
        type=str,
        default="",
        help="Symbol name (also picks the synthetic base price)",
    )

    # Run parameters (defaults from SIGNAL_BACKTEST_* environment)
    parser.add_argument("--balance", type=float, default=None, help="Initial balance")
    parser.add_argument("--risk", type=float, default=None, help="Risk per trade (fraction)")
    parser.add_argument("--threshold", type=float, default=None, help="Entry confidence threshold")
    parser.add_argument("--window", type=int, default=None, help="Candles per evaluation window")
    parser.add_argument("--warmup", type=int, default=None, help="First candle index to trade")
    parser.add_argument("--sentiment", type=float, default=None, help="Sentiment score in [-1, 1]")
    parser.add_argument(
        "--timeframe-trends",
        action="store_true",
        help="Derive 5m/15m/30m trends from the candle history",
    )

    # Output
    parser.add_argument(
        "--signal-only",
        action="store_true",
        help="Print the signal for the latest candle instead of backtesting",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output file path for JSON results",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    logger = logging.getLogger("signal_backtest")

    settings = get_backtest_settings()
    try:
        config = settings.to_config(
            initial_balance=args.balance,
            risk_pct=args.risk,
            entry_threshold=args.threshold,
            window_size=args.window,
            warmup=args.warmup,
            sentiment_score=args.sentiment,
            use_timeframe_trends=args.timeframe_trends or None,
        )
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 2

    # Load or generate candles
    try:
        if args.input:
            series = load_candles(args.input, symbol=args.symbol, newest_first=args.newest_first)
        else:
            n = args.synthetic or DEFAULT_SYNTHETIC_CANDLES
            series = generate_candles(n, symbol=args.symbol, seed=args.seed)
            logger.info(f"Generated {n} synthetic candles (seed={args.seed})")
    except (OSError, ValueError) as e:
        print(f"Error: cannot read candles: {e}", file=sys.stderr)
        return 1

    symbol = series.symbol or args.symbol

    if args.signal_only:
        engine = SignalEngine(config.strategy)
        last = len(series) - 1
        window = series.window(last, config.window_size)
        trends = (
            derive_timeframe_trends(
                series.window(last, trend_window_size(config.strategy)), config.strategy
            )
            if config.use_timeframe_trends
            else None
        )
        signal = engine.evaluate(
            window,
            sentiment_score=config.sentiment_score,
            trends=trends,
            account_balance=config.initial_balance,
        )
        ReportFormatter.print_signal(signal, symbol)
        if args.output:
            with open(args.output, "w") as f:
                f.write(signal.to_json(indent=2))
            print(f"\nSignal saved to {args.output}")
        return 0

    print(f"\nBacktest: {symbol or 'series'} ({len(series)} candles)")
    result = BacktestSimulator(config).run(series)

    # Print console report
    ReportFormatter.print_console(result, symbol)

    # Optional: save JSON
    if args.output:
        ReportFormatter.save_json(result, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
