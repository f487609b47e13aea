from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from candlefeed.candles.engine import AggregationEngine
from candlefeed.candles.merge import merge_live
from candlefeed.models.market import PriceObservation


def run(symbol: str = "CUSD/CEUR", seconds: int = 360, every: int = 5) -> None:
    """
    Generates fake price observations for `seconds` seconds and feeds them into the engine.

    - We simulate 1 observation every `every` seconds (the dashboard polls every 5s).
    - Price does a random walk (moves up/down a bit each observation).
    - The engine clock is pinned to the simulated time, so we can print
      the closed 1m/5m candles plus the live candle at the end.
    """
    start = datetime.now(timezone.utc).replace(second=0, microsecond=0)
    ts = start

    engine = AggregationEngine(capacity=1000, clock=lambda: ts)

    price = Decimal("1.0")

    print(f"Simulating prices for {symbol} for {seconds} seconds...\n")

    for _ in range(0, seconds, every):
        price = max(Decimal("0.0001"), price + Decimal(str(round(random.uniform(-0.002, 0.002), 6))))
        engine.ingest(symbol, PriceObservation(symbol=symbol, ts=ts, price=price))
        ts += timedelta(seconds=every)

    for timeframe in ("1m", "5m"):
        history = engine.generate_candles(symbol, timeframe, 100)
        live = engine.generate_live_candle(symbol, timeframe)

        for candle in merge_live(history, live):
            tag = "LIVE" if candle.is_live else "CLOSED"
            print(
                f"[{tag} {candle.timeframe}] {candle.symbol} "
                f"{candle.start_ts.isoformat()} -> "
                f"O={candle.o} H={candle.h} L={candle.l} C={candle.c} N={candle.trades}"
            )
        print()

    print("Done.")
    print(f"Observations retained: {len(engine.get_observations(symbol))}")


if __name__ == "__main__":
    run()
