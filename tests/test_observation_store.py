import unittest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from candlefeed.candles.cache import CandleCache
from candlefeed.candles.store import ObservationStore
from candlefeed.models.market import Candle, PriceObservation

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def obs(seconds: int, price: str = "1", symbol: str = "CUSD/CEUR") -> PriceObservation:
    return PriceObservation(symbol=symbol, ts=T0 + timedelta(seconds=seconds), price=Decimal(price))


def candle(symbol: str, seconds: int) -> Candle:
    start = T0 + timedelta(seconds=seconds)
    one = Decimal("1")
    return Candle(
        symbol=symbol,
        timeframe="1m",
        start_ts=start,
        end_ts=start + timedelta(minutes=1),
        o=one,
        h=one,
        l=one,
        c=one,
        v=Decimal(0),
        trades=1,
    )


class TestObservationStore(unittest.TestCase):
    def test_keeps_insertion_order_not_time_order(self):
        store = ObservationStore(capacity=10)
        for s in (30, 10, 20):
            store.append(obs(s))

        self.assertEqual([o.ts for o in store.all()], [T0 + timedelta(seconds=s) for s in (30, 10, 20)])

    def test_evicts_oldest_inserted_past_capacity(self):
        store = ObservationStore(capacity=3)
        evicted = [store.append(obs(s)) for s in (50, 40, 30, 20, 10)]

        self.assertEqual(evicted, [0, 0, 0, 1, 1])
        self.assertEqual(len(store), 3)
        self.assertEqual([o.ts.second for o in store.all()], [30, 20, 10])

    def test_duplicates_are_kept(self):
        store = ObservationStore(capacity=5)
        store.append(obs(0, "1"))
        store.append(obs(0, "1"))

        self.assertEqual(len(store), 2)

    def test_all_returns_a_copy(self):
        store = ObservationStore(capacity=5)
        store.append(obs(0))
        store.all().clear()

        self.assertEqual(len(store), 1)

    def test_capacity_must_be_positive(self):
        with self.assertRaises(ValueError):
            ObservationStore(capacity=0)


class TestCandleCache(unittest.TestCase):
    def put(self, cache, symbol, timeframe, limit, candles, window_end_s=600):
        cache.put(
            symbol,
            timeframe,
            limit,
            window_end=T0 + timedelta(seconds=window_end_s),
            period=timedelta(minutes=1),
            candles=candles,
        )

    def test_entry_serves_smaller_or_equal_windows(self):
        cache = CandleCache()
        self.put(cache, "A", "1m", 10, [candle("A", 0), candle("A", 60)])
        entry = cache.get("A", "1m")

        self.assertTrue(entry.serves(10))
        self.assertTrue(entry.serves(2))
        self.assertFalse(entry.serves(11))

    def test_narrow_window_is_cut_by_time(self):
        cache = CandleCache()
        # window [0, 600); the last 3 periods are [420, 600)
        self.put(cache, "A", "1m", 10, [candle("A", 0), candle("A", 60), candle("A", 480)])
        entry = cache.get("A", "1m")

        self.assertEqual([c.start_ts for c in entry.window(3)], [T0 + timedelta(seconds=480)])
        self.assertEqual(len(entry.window(10)), 3)
        self.assertEqual(entry.window(1), [])

    def test_invalidate_drops_every_timeframe_of_one_symbol(self):
        cache = CandleCache()
        self.put(cache, "A", "1m", 5, [candle("A", 0)])
        self.put(cache, "A", "1h", 5, [])
        self.put(cache, "B", "1m", 5, [candle("B", 0)])

        self.assertEqual(cache.invalidate("A"), 2)
        self.assertIsNone(cache.get("A", "1m"))
        self.assertIsNone(cache.get("A", "1h"))
        self.assertIsNotNone(cache.get("B", "1m"))

    def test_clear(self):
        cache = CandleCache()
        self.put(cache, "A", "1m", 5, [])
        cache.clear()

        self.assertIsNone(cache.get("A", "1m"))


if __name__ == "__main__":
    unittest.main()
