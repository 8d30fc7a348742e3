"""
Push channel handler for viewer WebSocket connections.

Each accepted socket gets one ViewerConnection. It sends the current section
cue straight away, then re-sends the latest cue every time the change signal
wakes it, until the peer closes, a send fails or the registry shuts down.
"""

import asyncio
import contextlib
import logging
from enum import Enum
from typing import Optional

from fastapi import WebSocket

from ..core.change_signal import SignalWatcher
from ..core.registry import ConnectionRegistry
from ..errors import SignalClosed

logger = logging.getLogger(__name__)

# Close code sent when the server stops streaming
GOING_AWAY = 1001


class ViewerState(Enum):
    """Lifecycle of a viewer connection."""

    CONNECTING = "connecting"
    STREAMING = "streaming"
    CLOSED = "closed"


class ViewerConnection:
    """Streams section cues to a single viewer socket."""

    def __init__(self, websocket: WebSocket, registry: ConnectionRegistry, send_timeout: Optional[float] = None):
        """
        Initialize viewer connection.

        Args:
            websocket: Accepted or about-to-be-accepted viewer socket
            registry: Shared section store
            send_timeout: Seconds allowed for one send, None or 0 for no limit
        """
        self.websocket = websocket
        self.registry = registry
        self.send_timeout = send_timeout or None
        self.state = ViewerState.CONNECTING
        self.messages_sent = 0

        client = websocket.client
        self.peer = f"{client.host}:{client.port}" if client else "unknown"

    async def run(self) -> None:
        """Drive the connection from accept to close."""
        await self.websocket.accept()
        self.registry.register(self)
        watcher = self.registry.subscribe()

        try:
            if await self._push_current():
                self.state = ViewerState.STREAMING
                await self._stream(watcher)
        finally:
            watcher.close()
            self.state = ViewerState.CLOSED
            self.registry.unregister(self)

    async def _stream(self, watcher: SignalWatcher) -> None:
        close_task = asyncio.ensure_future(self._wait_for_peer_close())
        change_task: Optional[asyncio.Future] = None

        try:
            while True:
                change_task = asyncio.ensure_future(watcher.wait_for_next_change())
                done, _ = await asyncio.wait({change_task, close_task}, return_when=asyncio.FIRST_COMPLETED)

                if close_task in done:
                    logger.debug(f"Socket with {self.peer} closed")
                    return

                try:
                    change_task.result()
                except SignalClosed:
                    # Section store shut down underneath a live connection
                    logger.error(f"Change signal closed while streaming to {self.peer}, closing socket")
                    with contextlib.suppress(Exception):
                        await self.websocket.close(code=GOING_AWAY)
                    return

                if not await self._push_current():
                    return
        finally:
            # No awaits here: the handler may itself be under cancellation
            for task in (change_task, close_task):
                if task is None:
                    continue
                if not task.done():
                    task.cancel()
                elif not task.cancelled():
                    task.exception()

    async def _wait_for_peer_close(self) -> None:
        """Consume inbound frames until the peer disconnects; payloads are ignored."""
        while True:
            message = await self.websocket.receive()
            if message["type"] == "websocket.disconnect":
                return
            logger.debug(f"Ignoring inbound frame from {self.peer}")

    async def _push_current(self) -> bool:
        """
        Send the current cue.

        Returns:
            True if the frame was sent, False if the connection must close
        """
        message = self.registry.cell.read().to_wire()
        logger.debug(f"Sending {message!r} to {self.peer}")

        try:
            if self.send_timeout:
                await asyncio.wait_for(self.websocket.send_text(message), timeout=self.send_timeout)
            else:
                await self.websocket.send_text(message)
        except asyncio.TimeoutError:
            logger.warning(f"Timed out sending to {self.peer} after {self.send_timeout}s")
            return False
        except Exception as e:
            logger.warning(f"Error sending to {self.peer}: {e}")
            return False

        self.messages_sent += 1
        return True
