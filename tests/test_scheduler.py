import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

from abstractions.metrics_sink import SCRAPE_DURATION, SCRAPE_ERRORS
from contracts.probe_results import CycleOutcome
from core.errors import StatusError
from core.scheduler import Scheduler
from core.scrape_cycle import ScrapeCycle
from fakes import RecordingSink


class SlowCycle:
    """
    Cycle stub that records how many runs overlap.
    """

    def __init__(self, duration):
        self.duration = duration
        self.runs = 0
        self.active = 0
        self.max_active = 0

    async def run(self, deadline=None):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.duration)
        finally:
            self.active -= 1
        self.runs += 1
        return CycleOutcome()


class TestScheduler(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.sink = RecordingSink()
        self.cycle = MagicMock(spec=ScrapeCycle)
        self.cycle.run = AsyncMock(return_value=CycleOutcome())

    def test_rejects_non_positive_interval(self):
        with self.assertRaises(ValueError):
            Scheduler(self.cycle, self.sink, 0)

    async def test_run_once_success_records_duration_only(self):
        scheduler = Scheduler(self.cycle, self.sink, interval=1.0)
        outcome = await scheduler.run_once()
        self.assertTrue(outcome.ok)
        self.assertEqual(self.sink.names(), [SCRAPE_DURATION])
        self.assertGreaterEqual(outcome.duration, 0)

    async def test_run_once_error_is_counted_and_duration_recorded(self):
        error = StatusError(500, "boom")
        self.cycle.run.side_effect = error
        scheduler = Scheduler(self.cycle, self.sink, interval=1.0)
        with self.assertLogs("core.scheduler", level="ERROR"):
            outcome = await scheduler.run_once()
        self.assertIs(outcome.error, error)
        self.assertEqual(self.sink.names(), [SCRAPE_ERRORS, SCRAPE_DURATION])

    async def test_unexpected_exception_does_not_escape(self):
        self.cycle.run.side_effect = RuntimeError("bug")
        scheduler = Scheduler(self.cycle, self.sink, interval=1.0)
        outcome = await scheduler.run_once()
        self.assertFalse(outcome.ok)
        self.assertIn(SCRAPE_ERRORS, self.sink.names())

    async def test_wait_for_tick_sleeps_until_next_tick(self):
        scheduler = Scheduler(self.cycle, self.sink, interval=0.05)
        loop = asyncio.get_running_loop()
        scheduler._next_tick = loop.time() + 0.05
        start = loop.time()
        await scheduler.wait_for_tick()
        self.assertGreaterEqual(loop.time() - start, 0.04)

    async def test_wait_for_tick_drops_missed_ticks(self):
        scheduler = Scheduler(self.cycle, self.sink, interval=0.1)
        loop = asyncio.get_running_loop()
        now = loop.time()
        scheduler._next_tick = now - 0.35
        await scheduler.wait_for_tick()
        # returns immediately and the next tick is the first one still ahead
        self.assertLess(loop.time() - now, 0.05)
        self.assertGreater(scheduler._next_tick, now)
        self.assertLessEqual(scheduler._next_tick, now + 0.1 + 1e-9)

    async def test_cycles_never_overlap(self):
        cycle = SlowCycle(duration=0.03)
        scheduler = Scheduler(cycle, self.sink, interval=0.01)
        await scheduler.start()
        await asyncio.sleep(0.15)
        await scheduler.stop()
        self.assertGreaterEqual(cycle.runs, 2)
        self.assertEqual(cycle.max_active, 1)
        self.assertEqual(self.sink.names().count(SCRAPE_DURATION), cycle.runs)

    async def test_first_cycle_runs_immediately(self):
        scheduler = Scheduler(self.cycle, self.sink, interval=10.0)
        await scheduler.start()
        await asyncio.sleep(0.02)
        await scheduler.stop()
        self.cycle.run.assert_awaited_once()


if __name__ == "__main__":
    unittest.main()
