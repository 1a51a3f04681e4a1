import asyncio
import logging
import math
import time

from abstractions.metrics_sink import SCRAPE_DURATION, SCRAPE_ERRORS, MetricsSink
from contracts.probe_results import CycleOutcome
from core.scrape_cycle import ScrapeCycle

logger = logging.getLogger(__name__)


class Scheduler:
    """
    Drives one scrape cycle per tick of a fixed-interval clock.

    Cycles never overlap: a cycle that overruns its interval delays the next
    one, and ticks missed in the meantime are dropped.
    """

    def __init__(self, cycle: ScrapeCycle, metrics: MetricsSink, interval: float):
        """
        Args:
            cycle (ScrapeCycle): The cycle to run on each tick.
            metrics (MetricsSink): Sink for cycle duration and error count.
            interval (float): Seconds between ticks.
        """
        if interval <= 0:
            raise ValueError("scrape interval must be positive")
        self.cycle = cycle
        self.metrics = metrics
        self.interval = interval
        self._task = None
        self._running = False
        self._next_tick = None

    async def run_once(self) -> CycleOutcome:
        """
        Run one cycle, record its duration and count it as an error if it was aborted.
        """
        start = time.perf_counter()
        try:
            outcome = await self.cycle.run()
        except Exception as e:
            logger.error(f"Scrape error: {e}")
            self.metrics.inc(SCRAPE_ERRORS)
            outcome = CycleOutcome(error=e)
        outcome.duration = time.perf_counter() - start
        self.metrics.observe(SCRAPE_DURATION, outcome.duration)
        return outcome

    async def wait_for_tick(self):
        """
        Sleep until the next tick. Returns immediately if a tick already passed
        while the previous cycle was running.
        """
        loop = asyncio.get_running_loop()
        now = loop.time()
        if self._next_tick is None:
            self._next_tick = now + self.interval
        if now < self._next_tick:
            await asyncio.sleep(self._next_tick - now)
            self._next_tick += self.interval
            return
        missed = math.floor((now - self._next_tick) / self.interval)
        if missed:
            logger.warning(f"Scrape cycle overran {missed} tick(s); dropping them")
        self._next_tick += (missed + 1) * self.interval

    async def run(self):
        """
        Run scrape cycles until stopped. The first cycle starts immediately.
        """
        self._running = True
        self._next_tick = asyncio.get_running_loop().time() + self.interval
        logger.info(f"Scheduler started with interval {self.interval}s")
        while self._running:
            await self.run_once()
            await self.wait_for_tick()

    async def start(self):
        """
        Start the scrape loop as an asynchronous task.
        """
        self._task = asyncio.create_task(self.run())

    async def stop(self):
        """
        Stop the scrape loop and cancel the running task.
        """
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Scheduler stopped.")
