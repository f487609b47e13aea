from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, Request
from pydantic import ValidationError

from candlefeed.candles.engine import AggregationEngine
from candlefeed.candles.merge import merge_live
from candlefeed.candles.timeframes import TIMEFRAMES
from candlefeed.errors import InvalidObservation
from candlefeed.jobs.price_ingest import ingest_record
from candlefeed.models.api import PriceBatch
from candlefeed.models.market import Candle

router = APIRouter()


def get_engine(request: Request) -> AggregationEngine:
    return request.app.state.engine


def _default_limit(request: Request, limit: Optional[int]) -> int:
    return limit if limit is not None else request.app.state.settings.default_candle_limit


def _dump(candles: list[Candle]) -> list[dict]:
    return [c.to_dict() for c in candles]


@router.get("/timeframes")
def timeframes():
    return {
        "timeframes": [
            {"name": tf.name, "seconds": tf.seconds, "label": tf.label}
            for tf in TIMEFRAMES.values()
        ]
    }


@router.post("/prices")
def ingest_prices(batch: PriceBatch, request: Request):
    """
    Ingest a page of upstream price-history rows.

    Bad rows are reported by index and skipped; good rows are ingested.
    """
    engine = get_engine(request)

    ingested = 0
    rejected = []
    for i, record in enumerate(batch.prices):
        try:
            ingest_record(engine, record)
        except (ValidationError, InvalidObservation) as e:
            rejected.append({"index": i, "error": str(e)})
            continue
        ingested += 1

    return {"ok": not rejected, "ingested": ingested, "rejected": rejected}


@router.get("/prices")
def list_prices(request: Request, pair: str = Query(..., description="Trading pair, e.g. CUSD/CEUR")):
    engine = get_engine(request)
    observations = engine.get_observations(pair)
    return {
        "pair": pair,
        "count": len(observations),
        "prices": [
            {"price": o.price, "timestamp": o.ts.isoformat()}
            for o in observations
        ],
    }


@router.get("/candles")
def candles(
    request: Request,
    pair: str = Query(..., description="Trading pair, e.g. CUSD/CEUR"),
    timeframe: str = Query("1m", description="Timeframe name, e.g. 1m, 1h"),
    limit: Optional[int] = Query(None, ge=1, description="Max closed candles"),
):
    engine = get_engine(request)
    result = engine.generate_candles(pair, timeframe, _default_limit(request, limit))
    return {"pair": pair, "timeframe": timeframe, "candles": _dump(result)}


@router.get("/candles/live")
def live_candle(
    request: Request,
    pair: str = Query(..., description="Trading pair, e.g. CUSD/CEUR"),
    timeframe: str = Query("1m", description="Timeframe name, e.g. 1m, 1h"),
):
    engine = get_engine(request)
    live = engine.generate_live_candle(pair, timeframe)
    return {
        "pair": pair,
        "timeframe": timeframe,
        "candle": live.to_dict() if live is not None else None,
    }


@router.get("/candles/chart")
def chart_candles(
    request: Request,
    pair: str = Query(..., description="Trading pair, e.g. CUSD/CEUR"),
    timeframe: str = Query("1m", description="Timeframe name, e.g. 1m, 1h"),
    limit: Optional[int] = Query(None, ge=1, description="Max closed candles"),
):
    """Closed candles with the live candle merged in as the trailing entry."""
    engine = get_engine(request)
    history = engine.generate_candles(pair, timeframe, _default_limit(request, limit))
    live = engine.generate_live_candle(pair, timeframe)
    return {
        "pair": pair,
        "timeframe": timeframe,
        "candles": _dump(merge_live(history, live)),
    }


@router.get("/candles/all")
def all_timeframes(
    request: Request,
    pair: str = Query(..., description="Trading pair, e.g. CUSD/CEUR"),
    limit: Optional[int] = Query(None, ge=1, description="Max closed candles per timeframe"),
):
    engine = get_engine(request)
    if limit is None:
        limit = request.app.state.settings.all_timeframes_limit

    by_tf = engine.generate_all_timeframes(pair, limit)
    return {"pair": pair, "timeframes": {tf: _dump(c) for tf, c in by_tf.items()}}


@router.delete("/pairs/{pair:path}")
def clear_pair(pair: str, request: Request):
    get_engine(request).clear(pair)
    return {"ok": True, "pair": pair}


@router.delete("/pairs")
def clear_all(request: Request):
    get_engine(request).clear_all()
    return {"ok": True}
