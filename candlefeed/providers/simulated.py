from __future__ import annotations

import asyncio
import logging
import random
from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncIterator, Optional

from candlefeed.providers.base import PriceFeed

log = logging.getLogger("simulated_feed")


class SimulatedPriceFeed(PriceFeed):
    """
    Local random-walk feed (no network).

    Every `interval_seconds` it emits one record per symbol, shaped like a
    row of the upstream price-history query. Price moves up/down a bit
    each round and never goes below `floor`.
    """

    def __init__(
        self,
        interval_seconds: float = 5.0,
        start_price: str = "1.0",
        step: float = 0.002,
        rounds: Optional[int] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.interval_seconds = interval_seconds
        self.start_price = Decimal(start_price)
        self.step = step
        self.rounds = rounds
        self.floor = Decimal("0.000001")
        self._rng = random.Random(seed)

    def _next_price(self, price: Decimal) -> Decimal:
        move = Decimal(str(round(self._rng.uniform(-self.step, self.step), 6)))
        return max(self.floor, price + move)

    async def stream_prices(self, symbols: list[str]) -> AsyncIterator[dict]:
        prices = {s: self.start_price for s in symbols}
        log.info("Simulated feed started symbols=%s interval=%.1fs", symbols, self.interval_seconds)

        done = 0
        while self.rounds is None or done < self.rounds:
            now = datetime.now(timezone.utc).isoformat()
            for symbol in symbols:
                prices[symbol] = self._next_price(prices[symbol])
                yield {
                    "pair": symbol,
                    "price": str(prices[symbol]),
                    "timestamp": now,
                    "source": "simulated",
                }

            done += 1
            await asyncio.sleep(self.interval_seconds)
