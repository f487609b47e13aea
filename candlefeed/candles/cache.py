from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from candlefeed.models.market import Candle


@dataclass(frozen=True)
class CacheEntry:
    """
    Closed candles computed for the window [window_end - limit * period, window_end).

    One candle per period at most, so len(candles) <= limit always.
    """
    limit: int
    window_end: datetime
    period: timedelta
    candles: Tuple[Candle, ...]

    def serves(self, limit: int) -> bool:
        return self.limit >= limit

    def window(self, limit: int) -> List[Candle]:
        """Cached candles inside the narrower window of `limit` periods."""
        start = self.window_end - limit * self.period
        return [c for c in self.candles if c.start_ts >= start]


@dataclass
class CandleCache:
    """
    Memoized closed-candle sequences.

    entries[(symbol, timeframe)] -> last computed CacheEntry

    Invalidation is per symbol and wholesale: one new observation
    drops every timeframe for that symbol.
    """
    entries: Dict[Tuple[str, str], CacheEntry] = field(default_factory=dict)

    def get(self, symbol: str, timeframe: str) -> Optional[CacheEntry]:
        return self.entries.get((symbol, timeframe))

    def put(
        self,
        symbol: str,
        timeframe: str,
        limit: int,
        window_end: datetime,
        period: timedelta,
        candles: List[Candle],
    ) -> None:
        self.entries[(symbol, timeframe)] = CacheEntry(
            limit=limit,
            window_end=window_end,
            period=period,
            candles=tuple(candles),
        )

    def invalidate(self, symbol: str) -> int:
        """Drop all entries for one symbol. Returns how many were dropped."""
        keys = [k for k in self.entries if k[0] == symbol]
        for k in keys:
            del self.entries[k]
        return len(keys)

    def clear(self) -> None:
        self.entries.clear()
