from __future__ import annotations


class CandleEngineError(ValueError):
    """Base class for caller errors raised by the aggregation engine."""


class UnknownTimeframe(CandleEngineError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown timeframe='{name}'")
        self.name = name


class InvalidObservation(CandleEngineError):
    """Rejected at ingest: bad price, naive timestamp or symbol mismatch."""
