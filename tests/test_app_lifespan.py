import asyncio
import unittest
from contextlib import suppress

from fastapi.testclient import TestClient

from candlefeed.config import Settings
from candlefeed.main import _on_ingest_done, create_app


def settings_with_feed(feed: str) -> Settings:
    return Settings(
        app_env="test",
        log_level="WARNING",
        observation_capacity=100,
        default_candle_limit=100,
        all_timeframes_limit=50,
        price_feed=feed,
        feed_symbols=["A"],
        feed_interval_seconds=0.01,
    )


class TestAppLifespan(unittest.TestCase):
    def test_feed_task_is_cancelled_and_awaited_on_shutdown(self):
        app = create_app(settings=settings_with_feed("SIMULATED"))

        with TestClient(app) as client:
            self.assertEqual(client.get("/health").status_code, 200)
            task = app.state.ingest_task
            self.assertFalse(task.done())

        self.assertTrue(task.done())
        self.assertTrue(task.cancelled())

    def test_no_feed_no_task(self):
        app = create_app(settings=settings_with_feed("NONE"))

        with TestClient(app):
            self.assertIsNone(app.state.ingest_task)

    def test_failed_ingest_task_is_logged(self):
        async def boom():
            raise RuntimeError("feed exploded")

        async def run():
            task = asyncio.create_task(boom())
            with suppress(RuntimeError):
                await task
            return task

        task = asyncio.run(run())

        with self.assertLogs("candlefeed_app", level="ERROR") as logs:
            _on_ingest_done(task)

        self.assertIn("feed exploded", logs.output[0])

    def test_finished_ingest_task_is_logged(self):
        async def done():
            return 3

        async def run():
            task = asyncio.create_task(done())
            await task
            return task

        task = asyncio.run(run())

        with self.assertLogs("candlefeed_app", level="INFO") as logs:
            _on_ingest_done(task)

        self.assertIn("ingested=3", logs.output[0])


if __name__ == "__main__":
    unittest.main()
