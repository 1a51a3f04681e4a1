import asyncio
import logging
import time

from websockets.asyncio.client import connect
from websockets.exceptions import WebSocketException

from contracts.probe_config import ProbeConfig
from contracts.probe_results import LatencyResult
from core.errors import WSHandshakeError, WSReadError, WSTimeoutError, WSWriteError

logger = logging.getLogger(__name__)

PING_PAYLOAD = b"ping"
# Upper bound on the ping/pong phase, independent of the handshake timeout
PING_BUDGET_SECONDS = 2.0
# How long close() waits for the peer's close frame
CLOSE_TIMEOUT_SECONDS = 0.25


class WebSocketProbe:
    """
    Measures round-trip latency of a WebSocket ping control frame.

    The connection is opened per call and closed exactly once before the call
    returns, whatever the outcome.
    """

    def __init__(
        self,
        config: ProbeConfig,
        connector=connect,
        ping_budget: float = PING_BUDGET_SECONDS,
    ):
        """
        Args:
            config (ProbeConfig): Probe settings.
            connector: Callable with the signature of ``websockets.asyncio.client.connect``
                returning an awaitable connection.
            ping_budget (float): Seconds allowed for the ping/pong exchange.
        """
        self.config = config
        self._connect = connector
        self.ping_budget = ping_budget

    async def check_websocket(self, deadline: float | None = None) -> LatencyResult:
        """
        Open a connection, send one ping and wait for its pong.

        Args:
            deadline: Optional overall deadline in event-loop time
                (``loop.time()``). The ping phase ends at whichever comes first,
                this deadline or ``ping_budget`` seconds from now.

        Returns:
            LatencyResult: round-trip time in seconds.

        Raises:
            WSHandshakeError: If the connection could not be established.
            WSWriteError: If the ping could not be sent before the deadline.
            WSTimeoutError: If no pong arrived before the deadline.
            WSReadError: If the connection failed while waiting for the pong.
        """
        loop = asyncio.get_running_loop()
        url = self.config.websocket_url
        handshake_timeout = self.config.websocket_handshake_timeout
        if deadline is not None:
            handshake_timeout = max(0.0, min(handshake_timeout, deadline - loop.time()))

        try:
            ws = await asyncio.wait_for(
                self._connect(
                    url,
                    additional_headers=self.config.auth_headers() or None,
                    open_timeout=handshake_timeout,
                    close_timeout=CLOSE_TIMEOUT_SECONDS,
                    ping_interval=None,
                ),
                timeout=handshake_timeout,
            )
        except asyncio.TimeoutError as e:
            raise WSHandshakeError(f"ws: handshake with {url} timed out") from e
        except (WebSocketException, OSError) as e:
            raise WSHandshakeError(f"ws: handshake with {url} failed: {e}") from e

        try:
            return await self._ping(ws, loop, deadline)
        finally:
            await self._close(ws)

    async def _ping(self, ws, loop, deadline):
        effective = loop.time() + self.ping_budget
        if deadline is not None and deadline < effective:
            effective = deadline

        t0 = time.perf_counter()
        try:
            pong_waiter = await asyncio.wait_for(
                ws.ping(PING_PAYLOAD), timeout=max(0.0, effective - loop.time())
            )
        except asyncio.TimeoutError as e:
            raise WSWriteError("ws: ping write timed out") from e
        except (WebSocketException, OSError) as e:
            raise WSWriteError(f"ws: ping write failed: {e}") from e

        # Keep pulling data frames off the connection so a full receive
        # queue never holds the pong back.
        reader = asyncio.ensure_future(self._discard_frames(ws))
        try:
            done, _ = await asyncio.wait(
                {pong_waiter, reader},
                timeout=max(0.0, effective - loop.time()),
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            reader.cancel()
            await asyncio.gather(reader, return_exceptions=True)

        if pong_waiter in done:
            failure = pong_waiter.exception()
        elif reader in done:
            pong_waiter.cancel()
            failure = reader.exception()
        else:
            pong_waiter.cancel()
            raise WSTimeoutError("ws: no pong before deadline")
        if failure is not None:
            raise WSReadError(
                f"ws: read failed while waiting for pong: {failure}"
            ) from failure

        rtt = time.perf_counter() - t0
        logger.debug(f"WebSocket ping {self.config.websocket_url}: rtt={rtt:.4f}s")
        return LatencyResult(rtt=rtt)

    @staticmethod
    async def _discard_frames(ws):
        while True:
            await ws.recv()

    async def _close(self, ws):
        try:
            await ws.close()
        except (WebSocketException, OSError) as e:
            logger.warning(f"Error closing WebSocket {self.config.websocket_url}: {e}")
