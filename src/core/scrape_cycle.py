import logging

from abstractions.metrics_sink import (
    BACKEND_HEALTH_LATENCY,
    BACKEND_HEALTH_UP,
    USERS_IN_GAME,
    USERS_ONLINE,
    WEBSOCKET_PING_RTT,
    WEBSOCKET_UP,
    MetricsSink,
)
from contracts.probe_results import CycleOutcome
from core.census_probe import CensusProbe
from core.errors import WSError
from core.health_probe import HealthProbe
from core.profiler import Profiler
from core.websocket_probe import WebSocketProbe

logger = logging.getLogger(__name__)


class ScrapeCycle:
    """
    Runs the health, census and WebSocket probes once, in that order, and
    publishes every observed value to the metrics sink as soon as it is known.

    Health and census failures abort the cycle and propagate. A WebSocket
    failure is only recorded as websocket_up=0.
    """

    def __init__(
        self,
        health_probe: HealthProbe,
        census_probe: CensusProbe,
        websocket_probe: WebSocketProbe,
        metrics: MetricsSink,
    ):
        self.health_probe = health_probe
        self.census_probe = census_probe
        self.websocket_probe = websocket_probe
        self.metrics = metrics

    @classmethod
    def from_config(cls, config, metrics: MetricsSink):
        return cls(
            HealthProbe(config),
            CensusProbe(config),
            WebSocketProbe(config),
            metrics,
        )

    @Profiler.profile
    async def run(self, deadline: float | None = None) -> CycleOutcome:
        """
        Execute one scrape cycle.

        Args:
            deadline: Optional overall deadline in event-loop time, forwarded
                to the WebSocket probe.

        Returns:
            CycleOutcome: what was observed this cycle.

        Raises:
            TransportError: If the health probe got no response.
            CensusError: If the census probe failed. Health metrics have
                already been published at that point.
        """
        outcome = CycleOutcome()

        health = await self.health_probe.check_health()
        self.metrics.set(BACKEND_HEALTH_UP, 1 if health.up else 0)
        self.metrics.observe(BACKEND_HEALTH_LATENCY, health.latency)
        outcome.health = health

        # TODO: a failing /users currently skips the WebSocket probe for the
        # whole cycle; decide whether census errors should be absorbed too.
        census = await self.census_probe.collect_users()
        self.metrics.set(USERS_ONLINE, census.online_count)
        self.metrics.set(USERS_IN_GAME, census.in_game_count)
        outcome.census = census

        try:
            latency = await self.websocket_probe.check_websocket(deadline)
        except WSError as e:
            logger.warning(f"WebSocket probe failed: {e}")
            self.metrics.set(WEBSOCKET_UP, 0)
            outcome.websocket_error = e
        else:
            self.metrics.set(WEBSOCKET_UP, 1)
            self.metrics.observe(WEBSOCKET_PING_RTT, latency.rtt)
            outcome.latency = latency

        return outcome
