from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, List, Optional

from candlefeed.candles.builder import build_candles, build_live_candle
from candlefeed.candles.cache import CandleCache
from candlefeed.candles.store import ObservationStore
from candlefeed.candles.timeframes import TIMEFRAMES, get_timeframe, period_start
from candlefeed.errors import InvalidObservation
from candlefeed.models.market import Candle, PriceObservation

log = logging.getLogger("candle_engine")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_observation(symbol: str, observation: PriceObservation) -> PriceObservation:
    """
    Ingest boundary checks. Returns the observation normalized to
    a Decimal price and a UTC timestamp.
    """
    if observation.symbol != symbol:
        raise InvalidObservation(
            f"observation symbol={observation.symbol!r} ingested under symbol={symbol!r}"
        )

    price = observation.price
    if not isinstance(price, Decimal):
        try:
            price = Decimal(str(price))
        except InvalidOperation:
            raise InvalidObservation(f"price is not numeric: {observation.price!r}")

    if not price.is_finite():
        raise InvalidObservation(f"price must be finite, got {price}")
    if price < 0:
        raise InvalidObservation(f"price must be >= 0, got {price}")

    ts = observation.ts
    if not isinstance(ts, datetime) or ts.tzinfo is None:
        raise InvalidObservation(f"timestamp must be a tz-aware datetime, got {ts!r}")

    return replace(observation, ts=ts.astimezone(timezone.utc), price=price)


class AggregationEngine:
    """
    Turns per-symbol price observations into OHLCV candles.

    Owns, per symbol:
    - an ObservationStore (latest `capacity` observations)
    - the CandleCache entries for every timeframe

    Not thread-safe: the host calls it from one loop.
    """

    def __init__(
        self,
        capacity: int = 1000,
        clock: Callable[[], datetime] = utcnow,
    ):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.clock = clock
        self.stores: Dict[str, ObservationStore] = {}
        self.cache = CandleCache()

    def ingest(self, symbol: str, observation: PriceObservation) -> None:
        """Append one observation and drop every cached timeframe for the symbol."""
        observation = validate_observation(symbol, observation)

        store = self.stores.get(symbol)
        if store is None:
            store = ObservationStore(capacity=self.capacity)
            self.stores[symbol] = store

        evicted = store.append(observation)
        if evicted:
            log.debug("Evicted symbol=%s count=%d", symbol, evicted)

        self.cache.invalidate(symbol)

    def get_observations(self, symbol: str) -> List[PriceObservation]:
        store = self.stores.get(symbol)
        return store.all() if store is not None else []

    def symbols(self) -> List[str]:
        return list(self.stores)

    def generate_candles(self, symbol: str, timeframe: str, limit: int = 100) -> List[Candle]:
        """
        Closed candles, ascending by start_ts, at most `limit` of them.

        Cache hit when the stored entry was built for a window at least
        `limit` periods wide; it is then cut to the last `limit` periods
        by time, not by count, since candles are sparse.
        """
        tf = get_timeframe(timeframe)
        if limit <= 0:
            raise ValueError(f"limit must be > 0, got {limit}")

        entry = self.cache.get(symbol, tf.name)
        if entry is not None and entry.serves(limit):
            return entry.window(limit)

        observations = self.get_observations(symbol)
        if not observations:
            return []

        now = self.clock()
        candles = build_candles(observations, symbol, tf, limit, now)
        self.cache.put(
            symbol,
            tf.name,
            limit,
            window_end=period_start(now, tf.seconds),
            period=tf.duration,
            candles=candles,
        )
        return list(candles)

    def generate_live_candle(self, symbol: str, timeframe: str) -> Optional[Candle]:
        tf = get_timeframe(timeframe)

        observations = self.get_observations(symbol)
        if not observations:
            return None

        return build_live_candle(observations, symbol, tf, self.clock())

    def generate_all_timeframes(self, symbol: str, limit: int = 50) -> Dict[str, List[Candle]]:
        return {name: self.generate_candles(symbol, name, limit) for name in TIMEFRAMES}

    def clear(self, symbol: str) -> None:
        self.stores.pop(symbol, None)
        self.cache.invalidate(symbol)

    def clear_all(self) -> None:
        self.stores.clear()
        self.cache.clear()
        log.info("Cleared all symbols")
