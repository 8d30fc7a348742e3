"""
Director control client.

Blocking HTTP client for the GetSection/SetSection control calls, with the
director's button actions layered on top: choosing a kind starts a new
section, choosing a number numbers the current kind, and clear blanks the cue.
"""

import logging
from typing import Any, Dict, Optional

import requests

from ..const import SECTION_ROUTE
from ..core.section_state import EMPTY_SECTION, SectionState
from ..errors import SectionControlError

logger = logging.getLogger(__name__)


class DirectorClient:
    """Sets and reads the section cue on a Song Director server."""

    def __init__(self, base_url: str = "http://localhost:3000", timeout: float = 5.0, session=None):
        """
        Initialize director client.

        Args:
            base_url: Server base URL
            timeout: Seconds allowed per control call
            session: Optional requests.Session to reuse
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

        # Optimistic local copy, updated before each send
        self.current: SectionState = EMPTY_SECTION

    @property
    def section_url(self) -> str:
        return self.base_url + SECTION_ROUTE

    def get_section(self) -> SectionState:
        """Fetch the cue from the server and adopt it as the local copy."""
        data = self._request("GET")
        try:
            self.current = SectionState.from_dict(data)
        except (AttributeError, ValueError) as e:
            raise SectionControlError(f"Malformed section from server: {data!r}") from e
        return self.current

    def set_section(self, section: SectionState) -> SectionState:
        """Replace the cue on the server."""
        self.current = section
        self._request("PUT", json={"kind": section.kind, "ordinal": section.ordinal})
        logger.info(f"Section set to {section.to_wire()!r}")
        return section

    def select_kind(self, kind: str) -> SectionState:
        return self.set_section(self.current.with_kind(kind))

    def select_ordinal(self, ordinal: Optional[int]) -> SectionState:
        return self.set_section(self.current.with_ordinal(ordinal))

    def clear(self) -> SectionState:
        return self.set_section(self.current.cleared())

    def _request(self, method: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self.session.request(method, self.section_url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as e:
            raise SectionControlError(f"Server rejected {method} {self.section_url}: {e}") from e
        except requests.RequestException as e:
            raise SectionControlError(f"Server error on {method} {self.section_url}: {e}") from e
        except ValueError as e:
            raise SectionControlError(f"Invalid response from {self.section_url}: {e}") from e

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "DirectorClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
