import logging
import math
import os
import re

from contracts.probe_config import ProbeConfig

logger = logging.getLogger(__name__)

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str) -> float:
    """
    Parse a duration string into seconds.

    Accepts Go-style durations such as "5s", "250ms" or "1h2m3.5s", as well as
    a bare number which is read as seconds.

    Raises:
        ValueError: If the string is not a valid non-negative duration.
    """
    text = value.strip()
    if not text:
        raise ValueError("empty duration")
    try:
        seconds = float(text)
    except ValueError:
        pos = 0
        seconds = 0.0
        for match in _DURATION_PART.finditer(text):
            if match.start() != pos:
                break
            seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
            pos = match.end()
        if pos != len(text):
            raise ValueError(f"invalid duration {value!r}")
    if not math.isfinite(seconds) or seconds < 0:
        raise ValueError(f"invalid duration {value!r}")
    return seconds


def _env_duration(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return parse_duration(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}s")
        return default


class Config:
    """
    Configuration class for environment variables and default settings.
    """

    BACKEND_BASE = os.environ.get("BACKEND_BASE") or "http://backend:3001"
    WS_URL = os.environ.get("WS_URL") or "ws://backend:3001/ws"
    API_TOKEN = os.environ.get("API_TOKEN") or None

    SCRAPE_INTERVAL = _env_duration("SCRAPE_INTERVAL", 5.0)
    HTTP_TIMEOUT = _env_duration("HTTP_TIMEOUT", 2.0)
    WS_TIMEOUT = _env_duration("WS_TIMEOUT", 3.0)

    # Prometheus endpoint
    METRICS_HOST = os.environ.get("METRICS_HOST", "0.0.0.0")
    METRICS_PORT = int(os.environ.get("METRICS_PORT", "9101"))
    METRICS_PATH = os.environ.get("METRICS_PATH", "/metrics")

    @classmethod
    def probe_config(cls) -> ProbeConfig:
        """
        Build the immutable probe configuration shared by every scrape cycle.
        """
        return ProbeConfig(
            backend_base_url=cls.BACKEND_BASE,
            websocket_url=cls.WS_URL,
            bearer_token=cls.API_TOKEN,
            http_timeout=cls.HTTP_TIMEOUT,
            websocket_handshake_timeout=cls.WS_TIMEOUT,
        )
