import logging

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

from abstractions.metrics_sink import (
    BACKEND_HEALTH_LATENCY,
    BACKEND_HEALTH_UP,
    SCRAPE_DURATION,
    SCRAPE_ERRORS,
    USERS_IN_GAME,
    USERS_ONLINE,
    WEBSOCKET_PING_RTT,
    WEBSOCKET_UP,
    MetricsSink,
)
from config.logging_config import setup_logging
from core.profiler import Profiler

setup_logging()
logger = logging.getLogger(__name__)

LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10)
RTT_BUCKETS = (0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1)


class MetricsManager(MetricsSink):
    """
    Prometheus-backed metrics sink owning a dedicated collector registry.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the MetricsManager and register the exporter's metrics.

        Args:
            registry: Optional registry to register into. A fresh one, with
                process and platform collectors, is created when omitted.
        """
        if registry is None:
            registry = CollectorRegistry()
            ProcessCollector(registry=registry)
            PlatformCollector(registry=registry)
        self.registry = registry

        self._histograms = {
            SCRAPE_DURATION: Histogram(
                SCRAPE_DURATION,
                "Scrape time in seconds",
                buckets=LATENCY_BUCKETS,
                registry=registry,
            ),
            BACKEND_HEALTH_LATENCY: Histogram(
                BACKEND_HEALTH_LATENCY,
                "Backend health check latency in seconds",
                buckets=LATENCY_BUCKETS,
                registry=registry,
            ),
            WEBSOCKET_PING_RTT: Histogram(
                WEBSOCKET_PING_RTT,
                "WebSocket ping round-trip time in seconds",
                buckets=RTT_BUCKETS,
                registry=registry,
            ),
        }
        self._gauges = {
            BACKEND_HEALTH_UP: Gauge(
                BACKEND_HEALTH_UP,
                "Backend health status (1 = up, 0 = down)",
                registry=registry,
            ),
            USERS_ONLINE: Gauge(
                USERS_ONLINE, "Number of users currently online", registry=registry
            ),
            USERS_IN_GAME: Gauge(
                USERS_IN_GAME, "Number of users currently in-game", registry=registry
            ),
            WEBSOCKET_UP: Gauge(
                WEBSOCKET_UP,
                "WebSocket connection status (1 = up, 0 = down)",
                registry=registry,
            ),
        }
        # prometheus_client appends the _total suffix on exposition
        self._counters = {
            SCRAPE_ERRORS: Counter(
                SCRAPE_ERRORS.removesuffix("_total"),
                "Total number of scrape errors",
                registry=registry,
            ),
        }
        logger.info("MetricsManager initialized.")

    def _lookup(self, table, kind, name):
        try:
            return table[name]
        except KeyError:
            if any(name in t for t in (self._histograms, self._gauges, self._counters)):
                raise TypeError(f"metric {name!r} is not a {kind}") from None
            raise KeyError(f"unknown metric {name!r}") from None

    def observe(self, name: str, value: float):
        self._lookup(self._histograms, "histogram", name).observe(value)
        logger.debug(f"observe {name}={value:.4f}")

    def set(self, name: str, value: float):
        self._lookup(self._gauges, "gauge", name).set(value)
        logger.debug(f"set {name}={value}")

    def inc(self, name: str, amount: float = 1):
        self._lookup(self._counters, "counter", name).inc(amount)
        logger.debug(f"inc {name} by {amount}")

    @Profiler.profile
    def render(self) -> bytes:
        """
        Render the registry in the Prometheus text exposition format.
        """
        return generate_latest(self.registry)
