"""
Logging setup for the server and the command line client.

Every record carries ``show_time``, the time elapsed since logging was set up,
which makes it easy to line up cue changes with a recording of the show.
"""

import logging
import logging.handlers
import sys
import time
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(show_time)s - %(name)s - %(levelname)s - %(message)s"

# Rotate the log file at this size, keeping one backup
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 1

# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "fastapi",
    "uvicorn.protocols.websockets",
    "websockets",
    "websockets.protocol",
    "websockets.server",
)


def format_elapsed(seconds: float) -> str:
    """Render elapsed seconds as mm:ss.xxx, clamping negative values to zero."""
    seconds = max(0.0, seconds)
    minutes, remainder = divmod(seconds, 60)
    return f"{int(minutes):02d}:{remainder:06.3f}"


class ShowTimeFormatter(logging.Formatter):
    """Formatter that adds a ``show_time`` field measured from ``started_at``."""

    def __init__(self, fmt: str = LOG_FORMAT, started_at: Optional[float] = None):
        super().__init__(fmt)
        self.started_at = time.time() if started_at is None else started_at

    def format(self, record):
        record.show_time = format_elapsed(record.created - self.started_at)
        return super().format(record)


def setup_logging(
    debug: bool = False, log_file: Optional[Union[str, Path]] = None, started_at: Optional[float] = None
) -> ShowTimeFormatter:
    """
    Configure the root logger.

    Args:
        debug: Log at DEBUG instead of INFO
        log_file: Optional file that receives the same records as the console
        started_at: Reference time for ``show_time``, defaults to now

    Returns:
        The formatter shared by all installed handlers
    """
    formatter = ShowTimeFormatter(started_at=started_at)

    root_logger = logging.getLogger()
    root_logger.handlers = []
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file).expanduser()
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT
            )
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning(f"Cannot write log file {log_path}: {e}")

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return formatter
