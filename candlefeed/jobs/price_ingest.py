from __future__ import annotations

import logging

from pydantic import ValidationError

from candlefeed.candles.engine import AggregationEngine
from candlefeed.errors import InvalidObservation
from candlefeed.models.api import PriceRecord
from candlefeed.providers.base import PriceFeed

log = logging.getLogger("price_ingest")


def ingest_record(engine: AggregationEngine, record: dict) -> None:
    """Upstream row -> PriceObservation -> engine. Raises on a bad row."""
    observation = PriceRecord.model_validate(record).to_observation()
    engine.ingest(observation.symbol, observation)


async def price_ingest_loop(
    feed: PriceFeed,
    engine: AggregationEngine,
    symbols: list[str],
) -> int:
    """
    Background loop:
    - reads record dicts from feed.stream_prices()
    - converts each to a PriceObservation
    - ingests it (which invalidates that symbol's cached candles)

    Returns the number of ingested records when the feed ends.
    """
    ingested = 0
    async for msg in feed.stream_prices(symbols):
        try:
            ingest_record(engine, msg)
        except (ValidationError, InvalidObservation) as e:
            # Skip malformed records, keep the loop alive
            log.warning("Skipping price record=%s error=%s", msg, e)
            continue
        ingested += 1

    log.info("Price feed ended ingested=%d", ingested)
    return ingested
