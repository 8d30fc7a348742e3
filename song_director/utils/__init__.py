"""
Utility modules for Song Director.
"""

from .logging_utils import ShowTimeFormatter, setup_logging

__all__ = ["ShowTimeFormatter", "setup_logging"]
