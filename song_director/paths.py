"""
Song Director Path Configuration.

Runtime data lives outside the source tree:
    $SONG_DIRECTOR_ROOT/config/   - Configuration files
    $SONG_DIRECTOR_ROOT/logs/     - Log files

Environment variable:
    SONG_DIRECTOR_ROOT - Base directory (default: ~/.local/share/song-director)
"""

import os
from pathlib import Path

APP_NAME = "song-director"

_root_override = os.environ.get("SONG_DIRECTOR_ROOT")
if _root_override:
    ROOT_DIR = Path(_root_override)
else:
    _xdg_data_home = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))
    ROOT_DIR = _xdg_data_home / APP_NAME

CONFIG_DIR = ROOT_DIR / "config"
LOGS_DIR = ROOT_DIR / "logs"

DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.json"

_ALL_DIRS = [CONFIG_DIR, LOGS_DIR]


def ensure_directories() -> None:
    """Create all required directories if they don't exist."""
    for dir_path in _ALL_DIRS:
        dir_path.mkdir(parents=True, exist_ok=True)


def get_log_file_path(filename: str = "song-director.log") -> Path:
    """Get the full path for a log file."""
    return LOGS_DIR / filename
