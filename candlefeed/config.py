# candlefeed/config.py
import os
from dataclasses import dataclass
from dotenv import load_dotenv

# Loads variables from a local .env file into environment variables (dev only).
load_dotenv()


@dataclass(frozen=True)
class Settings:
    # App config
    app_env: str
    log_level: str

    # Engine config
    observation_capacity: int
    default_candle_limit: int
    all_timeframes_limit: int

    # Price feed config
    price_feed: str
    feed_symbols: list[str]
    feed_interval_seconds: float


def _int_env(name: str, default: str) -> int:
    raw = os.getenv(name, default).strip()
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got '{raw}'")
    if value < 1:
        raise RuntimeError(f"{name} must be >= 1, got {value}")
    return value


def get_settings() -> Settings:
    """
    Reads env vars and returns a Settings object.
    """
    feed_symbols = [s.strip() for s in os.getenv("FEED_SYMBOLS", "CUSD/CEUR").split(",") if s.strip()]

    raw_interval = os.getenv("FEED_INTERVAL_SECONDS", "5").strip()
    try:
        feed_interval = float(raw_interval)
    except ValueError:
        raise RuntimeError(f"FEED_INTERVAL_SECONDS must be a number, got '{raw_interval}'")

    return Settings(
        app_env=os.getenv("APP_ENV", "local"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        observation_capacity=_int_env("OBSERVATION_CAPACITY", "1000"),
        default_candle_limit=_int_env("DEFAULT_CANDLE_LIMIT", "100"),
        all_timeframes_limit=_int_env("ALL_TIMEFRAMES_LIMIT", "50"),
        price_feed=os.getenv("PRICE_FEED", "NONE"),
        feed_symbols=feed_symbols,
        feed_interval_seconds=feed_interval,
    )
