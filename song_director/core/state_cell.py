"""
Holder for the single shared section cue.
"""

import logging
import threading

from ..errors import ControlUnavailableError
from .change_signal import ChangeSignal
from .section_state import EMPTY_SECTION, SectionState

logger = logging.getLogger(__name__)


class StateCell:
    """
    Owns the current SectionState.

    Reads return the current immutable snapshot without locking. Every
    replace() takes the write lock, swaps the value and notifies the change
    signal before releasing it, so the generation order always matches the
    write order. Equal values are not deduplicated.

    close() shuts the signal under the same lock, so a write is either
    notified or refused, never stored silently.
    """

    def __init__(self, signal: ChangeSignal, initial: SectionState = EMPTY_SECTION):
        self._signal = signal
        self._value = initial
        self._lock = threading.Lock()

    @property
    def signal(self) -> ChangeSignal:
        return self._signal

    def read(self) -> SectionState:
        return self._value

    def replace(self, new: SectionState) -> None:
        """
        Overwrite the cue and signal a change.

        Raises:
            TypeError: If new is not a SectionState
            ControlUnavailableError: If the cell has been closed
        """
        if not isinstance(new, SectionState):
            raise TypeError(f"Expected SectionState, got {type(new).__name__}")

        with self._lock:
            if self._signal.closed:
                raise ControlUnavailableError("Section store is shut down")
            self._value = new
            generation = self._signal.notify()

        logger.debug(f"Section replaced with {new!r} (generation {generation})")

    def close(self) -> None:
        """Refuse further writes and close the change signal."""
        with self._lock:
            self._signal.close()
