"""
Viewer client for the section push channel.

Connects to ``/ws``, parses every text frame into a SectionState and hands it
to a callback. Connection handling is an explicit state machine:

    DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTED   (normal close)
                        |             |
                        +-------------+---> FAILED            (retries exhausted)

Whether a failed or lost connection is retried is decided by a RetryPolicy.
The default policy never retries: the failure is reported once and the client
stops.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import websockets
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from ..const import WS_PATH
from ..core.section_state import SectionState
from ..errors import SectionConnectError

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Viewer client connection states."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


@dataclass
class RetryPolicy:
    """
    Reconnect policy for the viewer client.

    Attributes:
        max_attempts: Reconnect attempts allowed after consecutive failures, 0 disables retry
        initial_delay: Delay before the first reconnect (seconds)
        max_delay: Upper bound for the delay between reconnects (seconds)
        backoff: Multiplier applied to the delay after each failure
    """

    max_attempts: int = 0
    initial_delay: float = 0.5
    max_delay: float = 10.0
    backoff: float = 2.0

    def allows(self, failures: int) -> bool:
        return failures <= self.max_attempts

    def delay(self, failures: int) -> float:
        return min(self.max_delay, self.initial_delay * (self.backoff ** max(0, failures - 1)))


NO_RETRY = RetryPolicy()


def viewer_url(base_url: str) -> str:
    """Push channel URL for a server base URL such as ``http://host:3000``."""
    base = base_url.rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://") :]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://") :]
    return base + WS_PATH


class SectionViewerClient:
    """Receives section cues pushed by the server."""

    def __init__(
        self,
        url: str,
        on_section: Optional[Callable[[SectionState], None]] = None,
        retry_policy: Optional[RetryPolicy] = None,
        on_state_change: Optional[Callable[[ConnectionState], None]] = None,
        open_timeout: float = 10.0,
    ):
        """
        Initialize viewer client.

        Args:
            url: WebSocket URL of the push channel (ws://host:port/ws)
            on_section: Called with every received cue
            retry_policy: Reconnect policy, defaults to no retry
            on_state_change: Called on every connection state transition
            open_timeout: Seconds allowed for the opening handshake
        """
        self.url = url
        self.on_section = on_section
        self.retry_policy = retry_policy or NO_RETRY
        self.on_state_change = on_state_change
        self.open_timeout = open_timeout

        self.state = ConnectionState.DISCONNECTED
        self.latest: Optional[SectionState] = None
        self.last_error: Optional[SectionConnectError] = None
        self.messages_received = 0

        self._websocket = None
        self._closing = False
        self._close_requested: Optional[asyncio.Event] = None

    def _set_state(self, state: ConnectionState) -> None:
        if state is self.state:
            return
        logger.debug(f"Viewer client {self.url}: {self.state.value} -> {state.value}")
        self.state = state
        if self.on_state_change:
            self.on_state_change(state)

    async def run(self) -> None:
        """
        Stream cues until the server closes the connection or close() is called.

        close() takes effect in every state: while connecting, while
        streaming and while waiting to reconnect.

        Raises:
            SectionConnectError: When a connect or stream failure is not retried
        """
        self._close_requested = asyncio.Event()
        failures = 0

        while True:
            if self._closing:
                self._set_state(ConnectionState.DISCONNECTED)
                return

            self._set_state(ConnectionState.CONNECTING)
            try:
                async with websockets.connect(self.url, open_timeout=self.open_timeout) as websocket:
                    self._websocket = websocket
                    if self._closing:
                        logger.debug(f"Close requested while connecting to {self.url}")
                    else:
                        self._set_state(ConnectionState.CONNECTED)
                        logger.info(f"Connected to {self.url}")
                        failures = 0

                        async for message in websocket:
                            self._handle_message(message)

                self._set_state(ConnectionState.DISCONNECTED)
                logger.info(f"Connection to {self.url} closed")
                return

            except ConnectionClosed as e:
                error = SectionConnectError(f"Error receiving message from WebSocket: {e}")
                error.__cause__ = e
            except (OSError, InvalidHandshake, InvalidURI, asyncio.TimeoutError) as e:
                error = SectionConnectError(f"Could not open WebSocket {self.url}: {e}")
                error.__cause__ = e
            finally:
                self._websocket = None

            if self._closing:
                self._set_state(ConnectionState.DISCONNECTED)
                return

            failures += 1
            self.last_error = error

            if not self.retry_policy.allows(failures):
                logger.warning(str(error))
                self._set_state(ConnectionState.FAILED)
                raise error

            delay = self.retry_policy.delay(failures)
            logger.warning(
                f"{error}; reconnecting in {delay:.1f}s (attempt {failures}/{self.retry_policy.max_attempts})"
            )
            self._set_state(ConnectionState.DISCONNECTED)
            await self._wait_before_retry(delay)

    async def _wait_before_retry(self, delay: float) -> None:
        """Sleep for the backoff delay, cut short by close()."""
        try:
            await asyncio.wait_for(self._close_requested.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    def _handle_message(self, message) -> None:
        if not isinstance(message, str):
            logger.debug(f"Ignoring binary frame from {self.url}")
            return

        section = SectionState.from_wire(message)
        self.latest = section
        self.messages_received += 1
        logger.debug(f"Received section {message!r}")

        if self.on_section:
            self.on_section(section)

    async def close(self) -> None:
        """Stop the client; run() returns DISCONNECTED once the close completes."""
        self._closing = True
        if self._close_requested is not None:
            self._close_requested.set()
        if self._websocket is not None:
            await self._websocket.close()
