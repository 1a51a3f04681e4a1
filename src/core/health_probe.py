import logging
import time

import httpx

from contracts.probe_config import ProbeConfig
from contracts.probe_results import HealthResult
from core.errors import TransportError

logger = logging.getLogger(__name__)


class HealthProbe:
    """
    Checks the backend's /health endpoint and times the round trip.
    """

    def __init__(
        self,
        config: ProbeConfig,
        health_path: str = "/health",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.url = f"{config.backend_base_url}{health_path}"
        self._transport = transport

    async def check_health(self) -> HealthResult:
        """
        Issue a GET against the health endpoint.

        Latency is measured from dispatch until the response headers arrive;
        the body is never read. Any status outside 2xx reports the backend as
        down without raising.

        Returns:
            HealthResult: up/down flag and latency in seconds.

        Raises:
            TransportError: If no response was received within the HTTP timeout.
        """
        async with httpx.AsyncClient(
            timeout=self.config.http_timeout,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            t0 = time.perf_counter()
            try:
                async with client.stream(
                    "GET", self.url, headers=self.config.auth_headers()
                ) as resp:
                    latency = time.perf_counter() - t0
                    status = resp.status_code
            except httpx.HTTPError as e:
                logger.error(f"Health probe transport error for {self.url}: {e}")
                raise TransportError(f"health: {e}") from e
        up = 200 <= status < 300
        if not up:
            logger.warning(f"Health probe for {self.url} returned status={status}")
        logger.debug(f"Health probe {self.url}: up={up}, latency={latency:.4f}s")
        return HealthResult(up=up, latency=latency)
