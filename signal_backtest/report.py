"""Report formatting for backtest results.

Outputs results to console (formatted tables) and JSON files.
"""

from __future__ import annotations

import json

from signal_core.models import Signal

from signal_backtest.stats import BacktestResult


class ReportFormatter:
    """Format backtest results for display and export."""

    @staticmethod
    def print_console(result: BacktestResult, symbol: str = "") -> None:
        """Print formatted report to console."""
        print("\n" + "=" * 70)
        title = f"  BACKTEST RESULTS — {symbol}" if symbol else "  BACKTEST RESULTS"
        print(title)
        print("=" * 70)
        if result.equity:
            start = result.equity[0].timestamp
            end = result.equity[-1].timestamp
            print(f"  Period: {start:%Y-%m-%d %H:%M} → {end:%Y-%m-%d %H:%M}")
            print(f"  Candles processed: {len(result.equity)}")

        # Overall
        print("\n" + "-" * 70)
        print("  OVERALL")
        print("-" * 70)
        print(f"  Initial balance: {result.initial_balance:.2f}")
        print(f"  Final balance:   {result.final_balance:.2f}")
        print(f"  Net profit:      {result.net_profit:+.2f} ({result.return_pct:+.2f}%)")
        print(f"  Total trades:    {result.total_trades}")
        print(f"  Wins:            {result.wins}")
        print(f"  Losses:          {result.losses}")
        print(f"  Win rate:        {result.win_rate:.1f}%")
        print(f"  Profit factor:   {result.profit_factor:.2f}")
        print(f"  Max drawdown:    {result.max_drawdown:.2f}%")

        # By Direction
        if result.by_direction:
            print("\n" + "-" * 70)
            print("  BY DIRECTION")
            print("-" * 70)
            print(f"  {'Direction':<12} {'Total':>6} {'Wins':>6} {'Losses':>6} {'Win%':>8} {'Profit':>12}")
            for s in result.by_direction:
                print(
                    f"  {s.direction.value:<12} {s.total:>6} {s.wins:>6} {s.losses:>6} "
                    f"{s.win_rate:>7.1f}% {s.net_profit:>+12.2f}"
                )

        # Last trades
        if result.trades:
            print("\n" + "-" * 70)
            print("  TRADES (last 10)")
            print("-" * 70)
            print(f"  {'Entry time':<17} {'Dir':<5} {'Entry':>12} {'Exit':>12} {'Profit':>10} {'Result':>7}")
            for t in result.trades[-10:]:
                print(
                    f"  {t.entry_time:%Y-%m-%d %H:%M} {t.direction.value:<5} "
                    f"{t.entry_price:>12.5f} {t.exit_price:>12.5f} "
                    f"{t.profit:>+10.2f} {t.result.value:>7}"
                )

        print("\n" + "=" * 70)

    @staticmethod
    def print_signal(signal: Signal, symbol: str = "") -> None:
        """Print a single signal as indented JSON."""
        if symbol:
            print(f"\nLatest signal for {symbol}:")
        print(json.dumps(signal.model_dump(mode="json", by_alias=True), indent=2))

    @staticmethod
    def to_dict(result: BacktestResult) -> dict:
        """Convert results to a JSON-serializable dict with camelCase keys."""
        return result.model_dump(mode="json", by_alias=True)

    @staticmethod
    def save_json(result: BacktestResult, filepath: str) -> None:
        """Save results to JSON file."""
        data = ReportFormatter.to_dict(result)
        with open(filepath, "w") as f:
            json.dump(data, f, indent=2)
        print(f"\nResults saved to {filepath}")
