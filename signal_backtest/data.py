"""Candle loading and synthetic candle generation.

Files:
- JSON: a list of candle objects, or ``{"symbol": ..., "candles": [...]}``
- CSV: columns ``timestamp, open, high, low, close[, volume]``; timestamps
  are ISO-8601 strings or epoch seconds

Newest-first files are reversed at this boundary; everything downstream
works on oldest-first ``CandleSeries``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

import numpy as np
import pandas as pd

from signal_core.models import CandleSeries

logger = logging.getLogger(__name__)

PRICE_COLUMNS = ["open", "high", "low", "close"]

# Starting price per symbol for synthetic data
BASE_PRICES = {
    "USD/JPY": 110.0,
    "EUR/USD": 1.1,
    "GBP/USD": 1.3,
}
DEFAULT_BASE_PRICE = 0.7

DEFAULT_START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _frame_to_records(df: pd.DataFrame) -> list[dict]:
    """Normalize a candle DataFrame into plain-Python records."""
    df = df.rename(columns=str.lower)
    missing = [c for c in ["timestamp"] + PRICE_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"missing candle columns: {', '.join(missing)}")
    if "volume" not in df.columns:
        df["volume"] = 0.0

    if pd.api.types.is_numeric_dtype(df["timestamp"]):
        timestamps = pd.to_datetime(df["timestamp"], unit="s", utc=True)
    else:
        timestamps = pd.to_datetime(df["timestamp"], utc=True)

    values = df[PRICE_COLUMNS + ["volume"]].astype(float).to_dict("records")
    return [
        {"timestamp": ts.to_pydatetime(), **row}
        for ts, row in zip(timestamps, values)
    ]


def load_candles(
    path: str | Path,
    symbol: str = "",
    newest_first: bool = False,
) -> CandleSeries:
    """
    Load a candle file into an oldest-first CandleSeries.

    Args:
        path: JSON or CSV file (chosen by suffix)
        symbol: Symbol to attach when the file does not carry one
        newest_first: Reverse the file's order before validation

    Raises:
        OSError: The file cannot be read
        ValueError: Malformed content, including pydantic ValidationError
    """
    path = Path(path)

    if path.suffix.lower() == ".csv":
        records = _frame_to_records(pd.read_csv(path))
    else:
        with open(path) as f:
            data = json.load(f)
        if isinstance(data, dict):
            symbol = data.get("symbol") or symbol
            records = data.get("candles", [])
        else:
            records = data

    series = CandleSeries.from_records(records, symbol=symbol, newest_first=newest_first)
    logger.info(f"Loaded {len(series)} candles for {symbol or path.name} from {path}")
    return series


def generate_candles(
    n: int,
    symbol: str = "",
    base_price: float | None = None,
    seed: int | None = None,
    start: datetime = DEFAULT_START,
    interval: timedelta = timedelta(minutes=1),
) -> CandleSeries:
    """
    Generate a reproducible random-walk candle series.

    Each open drifts by ``sin(i / 1000) * 0.0001`` plus uniform noise of
    +/-0.05%; highs/lows extend up to 0.1% beyond the open and always
    contain the close. Volumes are integers in [500, 1500).

    Args:
        n: Number of candles
        symbol: Symbol name; also picks the base price if none is given
        base_price: Starting price (defaults per symbol)
        seed: Seed for ``numpy.random.default_rng``
        start: Timestamp of the first candle
        interval: Spacing between candles
    """
    if base_price is None:
        base_price = BASE_PRICES.get(symbol, DEFAULT_BASE_PRICE)
    rng = np.random.default_rng(seed)

    steps = np.arange(n)
    trend = np.sin(steps / 1000) * 0.0001
    noise = (rng.random(n) - 0.5) * 0.001
    opens = base_price * np.cumprod(1 + trend + noise)

    highs = opens * (1 + rng.random(n) * 0.001)
    lows = opens * (1 - rng.random(n) * 0.001)
    closes = opens * (1 + (rng.random(n) - 0.5) * 0.0005)
    highs = np.maximum(highs, closes)
    lows = np.minimum(lows, closes)
    volumes = rng.integers(500, 1500, size=n)

    records = [
        {
            "timestamp": start + interval * i,
            "open": float(opens[i]),
            "high": float(highs[i]),
            "low": float(lows[i]),
            "close": float(closes[i]),
            "volume": float(volumes[i]),
        }
        for i in range(n)
    ]
    return CandleSeries.from_records(records, symbol=symbol)
