"""
Global constants for the Song Director system.
"""

# Section kinds offered by the director buttons (chorus, verse, bridge, ...)
SECTION_KINDS = ("C", "V", "B", "P", "W", "E", "X", "R")

# Ordinals offered by the director buttons
SECTION_ORDINALS = (1, 2, 3, 4, 5)

# Rendered in place of an empty cue so the display keeps its height
PLACEHOLDER = "\u200b"

# Push channel and control API locations
WS_PATH = "/ws"
API_PREFIX = "/api"
SECTION_ROUTE = API_PREFIX + "/section"

# Server defaults
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_SEND_TIMEOUT = 5.0
