from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator, Dict, List


class PriceFeed(ABC):
    """
    Price feed contract (interface).

    Any feed must implement:
    - stream_prices(): upstream-shaped records as an async iterator
      {"pair": "...", "price": "<decimal string>", "timestamp": "<ISO-8601>"}
    """

    @abstractmethod
    async def stream_prices(self, symbols: List[str]) -> AsyncIterator[Dict]:
        raise NotImplementedError
