from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict

from candlefeed.errors import UnknownTimeframe

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Timeframe:
    name: str
    seconds: int
    label: str

    @property
    def duration(self) -> timedelta:
        return timedelta(seconds=self.seconds)


TIMEFRAMES: Dict[str, Timeframe] = {
    "1m": Timeframe("1m", 60, "1m"),
    "5m": Timeframe("5m", 300, "5m"),
    "15m": Timeframe("15m", 900, "15m"),
    "1h": Timeframe("1h", 3600, "1h"),
    "4h": Timeframe("4h", 14400, "4h"),
    "1d": Timeframe("1d", 86400, "1d"),
}


def get_timeframe(name: str) -> Timeframe:
    tf = TIMEFRAMES.get(name)
    if tf is None:
        raise UnknownTimeframe(name)
    return tf


def period_start(ts: datetime, seconds: int) -> datetime:
    """
    Round a timestamp down to the start of its period (UTC epoch aligned).

    Uses integer timedelta division so microseconds never leak into the
    bucket key.
    """
    period = timedelta(seconds=seconds)
    return EPOCH + ((ts - EPOCH) // period) * period
