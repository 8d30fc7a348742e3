"""
Process-wide section store and viewer bookkeeping.

A ConnectionRegistry is built once per application and handed to every
component that reads, writes or streams the section cue.
"""

import logging
import threading
import time
from typing import Any, Set

from .change_signal import ChangeSignal, SignalWatcher
from .section_state import EMPTY_SECTION, SectionState
from .state_cell import StateCell

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Pairs the StateCell with its ChangeSignal and tracks live viewers."""

    def __init__(self, initial: SectionState = EMPTY_SECTION):
        self.signal = ChangeSignal()
        self.cell = StateCell(self.signal, initial)
        self.started_at = time.time()

        self._connections: Set[Any] = set()
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self.signal.closed

    @property
    def active_connections(self) -> int:
        with self._lock:
            return len(self._connections)

    def subscribe(self) -> SignalWatcher:
        return self.signal.subscribe()

    def register(self, connection: Any) -> None:
        with self._lock:
            self._connections.add(connection)
            count = len(self._connections)
        logger.info(f"Viewer connected: {count} total connections")

    def unregister(self, connection: Any) -> None:
        with self._lock:
            if connection not in self._connections:
                return
            self._connections.discard(connection)
            count = len(self._connections)
        logger.info(f"Viewer disconnected: {count} total connections")

    def close(self) -> None:
        """Shut the store down; every streaming viewer is told to close."""
        if self.closed:
            return
        logger.info(f"Closing section registry with {self.active_connections} active connections")
        self.cell.close()
