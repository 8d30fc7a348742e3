"""
Song Director.

Broadcasts a single performance section cue from one director to any number
of connected viewers in real time.
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
