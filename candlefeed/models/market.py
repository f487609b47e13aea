from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class PriceObservation:
    """
    PriceObservation = a single timestamped price sample (one swap quote).

    symbol: trading pair, e.g. CUSD/CEUR
    ts: when the quote was observed (tz-aware, UTC)
    price: quoted price
    """
    symbol: str
    ts: datetime
    price: Decimal


@dataclass(frozen=True)
class Candle:
    """
    Candle (OHLCV) for one aligned timeframe window.

    start_ts: period start, aligned to the timeframe length
    end_ts: start_ts + timeframe length - not inclusive
    o/h/l/c: open/high/low/close prices during the window
    v: volume; upstream quotes carry no trade size so this is always 0
    trades: number of observations in the window
    is_live: True for the still-open current period
    """
    symbol: str
    timeframe: str
    start_ts: datetime
    end_ts: datetime
    o: Decimal
    h: Decimal
    l: Decimal
    c: Decimal
    v: Decimal
    trades: int
    is_live: bool = False

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "start_ts": self.start_ts.isoformat(),
            "end_ts": self.end_ts.isoformat(),
            "open": self.o,
            "high": self.h,
            "low": self.l,
            "close": self.c,
            "volume": self.v,
            "trades": self.trades,
            "is_live": self.is_live,
        }
