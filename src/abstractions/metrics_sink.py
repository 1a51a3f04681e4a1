from abc import ABC, abstractmethod

SCRAPE_DURATION = "transc_scrape_duration_seconds"
SCRAPE_ERRORS = "transc_scrape_errors_total"
BACKEND_HEALTH_UP = "backend_health_up"
BACKEND_HEALTH_LATENCY = "backend_health_latency_seconds"
USERS_ONLINE = "users_online"
USERS_IN_GAME = "users_in_game"
WEBSOCKET_UP = "websocket_up"
WEBSOCKET_PING_RTT = "websocket_ping_rtt_seconds"


class MetricsSink(ABC):
    """
    Abstract destination for the values observed by the probe engine.

    Implementations must tolerate being updated from the probe loop while being
    read by whatever exposes them.
    """

    @abstractmethod
    def observe(self, name: str, value: float):
        """
        Record a sample on a histogram.

        Args:
            name (str): Metric name.
            value (float): Observed value, in seconds for durations.
        """

    @abstractmethod
    def set(self, name: str, value: float):
        """
        Set a gauge to an absolute value.

        Args:
            name (str): Metric name.
            value (float): New gauge value.
        """

    @abstractmethod
    def inc(self, name: str, amount: float = 1):
        """
        Increment a counter.

        Args:
            name (str): Metric name.
            amount (float): Increment, defaults to 1.
        """
