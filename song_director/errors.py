"""
Exception types shared across the Song Director packages.
"""


class SongDirectorError(Exception):
    """Base exception for Song Director errors."""


class InvalidSectionError(SongDirectorError, ValueError):
    """Raised when a section cue violates the kind/ordinal invariant."""


class SignalClosed(SongDirectorError):
    """Raised by a watcher once its change signal has been shut down."""


class ControlUnavailableError(SongDirectorError):
    """Raised when the section store can no longer accept writes."""


class SectionClientError(SongDirectorError):
    """Base exception for client-side failures."""


class SectionConnectError(SectionClientError):
    """Raised when the push channel cannot be opened or is lost for good."""


class SectionControlError(SectionClientError):
    """Raised when a control call fails."""
