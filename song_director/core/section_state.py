"""
Section cue data model.

A section cue is a kind letter (chorus, verse, ...) with an optional ordinal.
The cue travels to viewers as a compact text form: ``""`` when nothing is
selected, ``"C"`` for a bare kind and ``"V3"`` for a kind with an ordinal.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..const import PLACEHOLDER
from ..errors import InvalidSectionError


@dataclass(frozen=True)
class SectionState:
    """Immutable section cue.

    Attributes:
        kind: Single character section kind, or None when no cue is shown
        ordinal: Positive section number, only valid together with a kind
    """

    kind: Optional[str] = None
    ordinal: Optional[int] = None

    def __post_init__(self):
        if self.kind is not None:
            if not isinstance(self.kind, str) or len(self.kind) != 1:
                raise InvalidSectionError(f"Section kind must be a single character, got {self.kind!r}")
        if self.ordinal is not None:
            if isinstance(self.ordinal, bool) or not isinstance(self.ordinal, int) or self.ordinal < 1:
                raise InvalidSectionError(f"Section ordinal must be a positive integer, got {self.ordinal!r}")
            if self.kind is None:
                raise InvalidSectionError("Section ordinal requires a section kind")

    @property
    def is_empty(self) -> bool:
        return self.kind is None

    def to_wire(self) -> str:
        """Serialize to the push channel text form."""
        if self.kind is None:
            return ""
        if self.ordinal is None:
            return self.kind
        return f"{self.kind}{self.ordinal}"

    def display(self) -> str:
        """Text for on-screen display; never empty."""
        return self.to_wire() or PLACEHOLDER

    @classmethod
    def from_wire(cls, message: str) -> "SectionState":
        """
        Parse a push channel frame.

        The first character is the kind. Anything after it is taken as the
        ordinal when it is a positive decimal number and ignored otherwise.

        Args:
            message: Text frame received from the push channel

        Returns:
            Parsed SectionState
        """
        if not message:
            return cls()

        kind, rest = message[0], message[1:]
        ordinal = None
        if rest.isascii() and rest.isdigit():
            number = int(rest)
            if number > 0:
                ordinal = number
        return cls(kind=kind, ordinal=ordinal)

    def with_kind(self, kind: str) -> "SectionState":
        """Select a new kind; the ordinal starts over."""
        return SectionState(kind=kind)

    def with_ordinal(self, ordinal: Optional[int]) -> "SectionState":
        """Number the current kind."""
        if self.kind is None:
            raise InvalidSectionError("Cannot number a section before a section kind is chosen")
        return SectionState(kind=self.kind, ordinal=ordinal)

    def cleared(self) -> "SectionState":
        return SectionState()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"kind": self.kind, "ordinal": self.ordinal, "display": self.to_wire()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SectionState":
        """Create from dictionary."""
        return cls(kind=data.get("kind"), ordinal=data.get("ordinal"))


EMPTY_SECTION = SectionState()
