from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List

from candlefeed.models.market import PriceObservation


@dataclass
class ObservationStore:
    """
    In-memory price observations for ONE symbol.

    - keeps the latest `capacity` observations in insertion order
    - eviction is by count, not by age (oldest inserted goes first)
    - insertion order is NOT assumed chronological; builders sort
    - no dedup: same-timestamp observations are all kept
    """
    capacity: int = 1000
    observations: Deque[PriceObservation] = field(default_factory=deque)

    def __post_init__(self) -> None:
        if self.capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {self.capacity}")

    def append(self, observation: PriceObservation) -> int:
        """Add to the tail. Returns how many old observations were evicted."""
        self.observations.append(observation)

        evicted = 0
        while len(self.observations) > self.capacity:
            self.observations.popleft()
            evicted += 1
        return evicted

    def all(self) -> List[PriceObservation]:
        return list(self.observations)

    def __len__(self) -> int:
        return len(self.observations)
