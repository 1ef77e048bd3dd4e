"""Candle (OHLCV) data models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Candle(BaseModel):
    """Candle (OHLCV) data model.

    ``timestamp`` accepts ISO-8601 strings or epoch seconds; naive
    timestamps are taken as UTC.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = Field(default=0.0, ge=0)

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def is_bullish(self) -> bool:
        """Check if this is a bullish (green) candle."""
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        """Check if this is a bearish (red) candle."""
        return self.close < self.open

    @property
    def range_size(self) -> float:
        """Get the full range (high - low) of the candle."""
        return self.high - self.low


class CandleSeries(BaseModel):
    """Ordered candles, oldest first.

    Every indicator treats the last element as the latest candle.
    Providers that deliver newest-first data must go through
    ``from_records(..., newest_first=True)``.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str = ""
    candles: list[Candle] = Field(default_factory=list)

    @field_validator("candles")
    @classmethod
    def _check_order(cls, candles: list[Candle]) -> list[Candle]:
        for prev, cur in zip(candles, candles[1:]):
            if cur.timestamp <= prev.timestamp:
                raise ValueError(
                    f"candles must be oldest-first with increasing timestamps "
                    f"({prev.timestamp.isoformat()} then {cur.timestamp.isoformat()})"
                )
        return candles

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any] | Candle],
        symbol: str = "",
        newest_first: bool = False,
    ) -> CandleSeries:
        """Build a series from raw records, reversing newest-first input."""
        candles = [
            r if isinstance(r, Candle) else Candle.model_validate(r) for r in records
        ]
        if newest_first:
            candles.reverse()
        return cls(symbol=symbol, candles=candles)

    def window(self, end: int, size: int) -> CandleSeries:
        """Trailing slice of at most ``size`` candles ending at index ``end``."""
        start = max(0, end - size + 1)
        # Already validated; skip re-checking the ordering per slice.
        return CandleSeries.model_construct(
            symbol=self.symbol, candles=self.candles[start : end + 1]
        )

    @property
    def latest(self) -> Candle | None:
        return self.candles[-1] if self.candles else None

    def get_closes(self) -> list[float]:
        """Get list of close prices."""
        return [c.close for c in self.candles]

    def get_opens(self) -> list[float]:
        """Get list of open prices."""
        return [c.open for c in self.candles]

    def get_highs(self) -> list[float]:
        """Get list of high prices."""
        return [c.high for c in self.candles]

    def get_lows(self) -> list[float]:
        """Get list of low prices."""
        return [c.low for c in self.candles]

    def get_volumes(self) -> list[float]:
        """Get list of volumes."""
        return [c.volume for c in self.candles]

    def __len__(self) -> int:
        return len(self.candles)

    def __getitem__(self, index: int) -> Candle:
        return self.candles[index]
