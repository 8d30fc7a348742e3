"""
Coalescing change notification.

A ChangeSignal carries no payload. It only tells each watcher that the shared
section cue has changed at least once since the watcher last woke, so the
watcher re-reads the current value. Rapid changes collapse into one wake and
nothing is queued.

The signal is a generation counter guarded by a lock. Each watcher remembers
the last generation it observed and owns an asyncio.Event bound to the event
loop it was created on, so notify() may be called from any thread.
"""

import asyncio
import logging
import threading
from typing import List, Optional, Set

from ..errors import SignalClosed

logger = logging.getLogger(__name__)


class ChangeSignal:
    """Last-value-wins notification shared by one producer and many watchers."""

    def __init__(self):
        self._lock = threading.Lock()
        self._generation = 0
        self._closed = False
        self._watchers: Set["SignalWatcher"] = set()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def watcher_count(self) -> int:
        with self._lock:
            return len(self._watchers)

    def subscribe(self) -> "SignalWatcher":
        """
        Create an independent watcher.

        Must be called from a coroutine; the watcher wakes on the running loop.

        Returns:
            SignalWatcher that starts at the current generation
        """
        loop = asyncio.get_running_loop()
        with self._lock:
            watcher = SignalWatcher(self, loop, self._generation)
            if not self._closed:
                self._watchers.add(watcher)
        return watcher

    def notify(self) -> int:
        """
        Mark the value as changed and wake every watcher.

        Returns:
            The new generation number
        """
        with self._lock:
            if self._closed:
                logger.debug("Notify on closed change signal ignored")
                return self._generation
            self._generation += 1
            generation = self._generation
            watchers = list(self._watchers)

        for watcher in watchers:
            watcher._wake()
        return generation

    def close(self) -> None:
        """Shut down the producer side; all current and future waits raise SignalClosed."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            watchers: List[SignalWatcher] = list(self._watchers)
            self._watchers.clear()

        logger.info(f"Change signal closed, waking {len(watchers)} watchers")
        for watcher in watchers:
            watcher._wake()

    def _discard(self, watcher: "SignalWatcher") -> None:
        with self._lock:
            self._watchers.discard(watcher)


class SignalWatcher:
    """One consumer's view of a ChangeSignal."""

    def __init__(self, signal: ChangeSignal, loop: asyncio.AbstractEventLoop, generation: int):
        self._signal = signal
        self._loop = loop
        self._seen = generation
        self._event = asyncio.Event()
        self._closed = False

    @property
    def seen_generation(self) -> int:
        return self._seen

    async def wait_for_next_change(self) -> None:
        """
        Suspend until the signal has been notified since this watcher last woke.

        Raises:
            SignalClosed: If the signal or this watcher has been closed
        """
        while True:
            self._event.clear()
            if self._signal.closed or self._closed:
                raise SignalClosed("Change signal is closed")

            generation = self._signal.generation
            if generation != self._seen:
                self._seen = generation
                return

            await self._event.wait()

    def close(self) -> None:
        """Unsubscribe. Pending and later waits raise SignalClosed."""
        if self._closed:
            return
        self._closed = True
        self._signal._discard(self)
        self._wake()

    def _wake(self) -> None:
        try:
            running: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            self._event.set()
            return

        try:
            self._loop.call_soon_threadsafe(self._event.set)
        except RuntimeError:
            # Owning loop is gone, nobody can wait on this watcher any more
            self._signal._discard(self)

    def __enter__(self) -> "SignalWatcher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
