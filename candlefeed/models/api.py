from __future__ import annotations

import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from pydantic import BaseModel

from candlefeed.errors import InvalidObservation
from candlefeed.models.market import PriceObservation

# Postgres timestamptz text: "2024-01-01 00:00:00.12+00", "...T...1234567+0530", "...Z"
_TS_RE = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(?::\d{2})?)"
    r"(?:\.(?P<frac>\d+))?"
    r"(?P<tz>Z|[+-]\d{2}(?::?\d{2})?)?$"
)


def _normalize_iso(text: str) -> str:
    """Rewrite fraction/offset forms that datetime.fromisoformat rejects on 3.10."""
    m = _TS_RE.match(text)
    if m is None:
        return text

    out = m.group("base")

    frac = m.group("frac")
    if frac:
        out += "." + frac[:6].ljust(6, "0")

    tz = m.group("tz")
    if tz == "Z":
        out += "+00:00"
    elif tz:
        digits = tz[1:].replace(":", "")
        out += f"{tz[0]}{digits[:2]}:{digits[2:] or '00'}"

    return out


def parse_timestamp(raw: str) -> datetime:
    """ISO-8601 -> aware UTC datetime. Naive values are read as UTC."""
    ts = datetime.fromisoformat(_normalize_iso(raw.strip()))
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


class PriceRecord(BaseModel):
    """
    One row of the upstream price-history query.

    Only pair/price/timestamp are used; the rest of the row
    (id, token_in, source, block_number, ...) is ignored.
    """

    pair: str
    price: str
    timestamp: str

    def to_observation(self) -> PriceObservation:
        try:
            price = Decimal(self.price.strip())
        except InvalidOperation:
            raise InvalidObservation(f"price is not a decimal: {self.price!r}")

        try:
            ts = parse_timestamp(self.timestamp)
        except ValueError:
            raise InvalidObservation(f"timestamp is not ISO-8601: {self.timestamp!r}")

        return PriceObservation(symbol=self.pair, ts=ts, price=price)


class PriceBatch(BaseModel):
    """
    Body of POST /prices.

    Records stay raw dicts so one malformed row is reported
    instead of failing the whole batch.
    """

    prices: List[Dict[str, Any]]
