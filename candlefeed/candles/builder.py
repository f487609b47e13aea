from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from candlefeed.candles.timeframes import Timeframe, period_start
from candlefeed.models.market import Candle, PriceObservation


def sort_by_time(observations: Iterable[PriceObservation]) -> List[PriceObservation]:
    """Ascending by ts. Stable, so same-ts observations keep insertion order."""
    return sorted(observations, key=lambda o: o.ts)


def _summarize(
    symbol: str,
    timeframe: Timeframe,
    start_ts: datetime,
    bucket: List[PriceObservation],
    is_live: bool,
) -> Candle:
    """OHLC over a non-empty, already time-sorted bucket."""
    prices = [o.price for o in bucket]
    return Candle(
        symbol=symbol,
        timeframe=timeframe.name,
        start_ts=start_ts,
        end_ts=start_ts + timeframe.duration,
        o=prices[0],
        h=max(prices),
        l=min(prices),
        c=prices[-1],
        v=Decimal(0),
        trades=len(prices),
        is_live=is_live,
    )


def build_candles(
    observations: Iterable[PriceObservation],
    symbol: str,
    timeframe: Timeframe,
    limit: int,
    now: datetime,
) -> List[Candle]:
    """
    Closed candles for the `limit` most recent periods that ended at or before `now`.

    Window = [cur - limit * period, cur) where cur is the start of the period
    containing `now`. The window is anchored at `now`, not at the newest
    observation, so stale data drops out even while it is still retained.

    One pass after the sort:
    - observations outside the window are skipped
    - the rest go into buckets keyed by aligned period start
    - empty periods produce no candle (output can have gaps)
    """
    if limit <= 0:
        raise ValueError(f"limit must be > 0, got {limit}")

    current_start = period_start(now, timeframe.seconds)
    window_start = current_start - limit * timeframe.duration

    buckets: Dict[datetime, List[PriceObservation]] = {}
    for obs in sort_by_time(observations):
        if obs.ts < window_start or obs.ts >= current_start:
            continue
        key = period_start(obs.ts, timeframe.seconds)
        buckets.setdefault(key, []).append(obs)

    return [
        _summarize(symbol, timeframe, start_ts, bucket, is_live=False)
        for start_ts, bucket in sorted(buckets.items())
    ]


def build_live_candle(
    observations: Iterable[PriceObservation],
    symbol: str,
    timeframe: Timeframe,
    now: datetime,
) -> Optional[Candle]:
    """
    The still-open candle for the period containing `now`.

    Selects start <= ts <= now (inclusive of now: the live period has no end yet).
    Returns None until at least one observation lands in the current period.
    Recomputed from scratch on every call.
    """
    start_ts = period_start(now, timeframe.seconds)

    bucket = [o for o in sort_by_time(observations) if start_ts <= o.ts <= now]
    if not bucket:
        return None

    return _summarize(symbol, timeframe, start_ts, bucket, is_live=True)
