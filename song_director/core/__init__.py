"""
Core Section Broadcast Components.

This module contains the building blocks shared by the web server:
- Immutable section cue model and its wire format
- Coalescing change signal
- State cell, connection registry and the director control path
"""

from .change_signal import ChangeSignal, SignalWatcher
from .control import SectionControl
from .registry import ConnectionRegistry
from .section_state import EMPTY_SECTION, SectionState
from .state_cell import StateCell

__all__ = [
    "ChangeSignal",
    "SignalWatcher",
    "StateCell",
    "ConnectionRegistry",
    "SectionControl",
    "SectionState",
    "EMPTY_SECTION",
]
