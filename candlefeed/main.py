import asyncio
import logging
import traceback
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from candlefeed.api.routes import router as api_router
from candlefeed.candles.engine import AggregationEngine
from candlefeed.config import Settings, get_settings
from candlefeed.errors import CandleEngineError
from candlefeed.jobs.price_ingest import price_ingest_loop
from candlefeed.providers.loader import get_feed

log = logging.getLogger("candlefeed_app")


def _on_ingest_done(task: asyncio.Task) -> None:
    """Surface how the background ingest task ended."""
    if task.cancelled():
        return

    exc = task.exception()
    if exc is not None:
        log.error("Price ingest task failed error=%s", repr(exc))
        log.error("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
        return

    log.info("Price ingest task finished ingested=%s", task.result())


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[AggregationEngine] = None,
) -> FastAPI:
    """
    Builds the API process.

    The engine is owned by the app (app.state.engine); nothing else holds it.
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Optional in-process feed; otherwise prices arrive via POST /prices
        feed = get_feed(settings)
        task = None
        if feed is not None:
            task = asyncio.create_task(
                price_ingest_loop(
                    feed=feed,
                    engine=app.state.engine,
                    symbols=settings.feed_symbols,
                )
            )
            task.add_done_callback(_on_ingest_done)
        app.state.ingest_task = task
        yield
        # A task that already ended was reported by _on_ingest_done
        if task is not None and not task.done():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task

    app = FastAPI(title="Candlefeed API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine or AggregationEngine(capacity=settings.observation_capacity)
    app.include_router(api_router)

    @app.exception_handler(CandleEngineError)
    async def _engine_error(request: Request, exc: CandleEngineError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "app_env": settings.app_env,
            "observation_capacity": settings.observation_capacity,
            "price_feed": settings.price_feed,
            "symbols": app.state.engine.symbols(),
        }

    return app


app = create_app()
