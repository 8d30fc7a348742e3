"""
Director-facing access to the section cue.
"""

import logging

from .registry import ConnectionRegistry
from .section_state import SectionState

logger = logging.getLogger(__name__)


class SectionControl:
    """Single write path for the section cue, plus a read pass-through."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    def set(self, section: SectionState) -> None:
        """
        Replace the current cue.

        Args:
            section: Fully formed replacement cue

        Raises:
            ControlUnavailableError: If the registry has been shut down
        """
        self.registry.cell.replace(section)
        logger.info(f"Updated section to {section!r}")

    def get(self) -> SectionState:
        return self.registry.cell.read()
