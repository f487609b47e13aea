from typing import Optional

from candlefeed.config import Settings
from candlefeed.providers.base import PriceFeed
from candlefeed.providers.simulated import SimulatedPriceFeed


def get_feed(settings: Settings) -> Optional[PriceFeed]:
    """
    Feed loader / factory.

    Reads PRICE_FEED from config and returns an instance of the selected feed,
    or None when the host is fed only through POST /prices.
    This is the single place that knows about concrete feeds.
    """
    feed_name = settings.price_feed.strip().upper()

    if feed_name == "NONE":
        return None

    if feed_name == "SIMULATED":
        return SimulatedPriceFeed(interval_seconds=settings.feed_interval_seconds)

    raise ValueError(f"Unknown PRICE_FEED='{settings.price_feed}'. Expected: NONE, SIMULATED")
