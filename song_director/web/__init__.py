"""
Web Interface Components.

This module contains the web-facing side of Song Director:
- FastAPI application with director control and status endpoints
- WebSocket push channel streaming the section cue to viewers
"""

from .api_server import create_app, run_server
from .section_socket import ViewerConnection, ViewerState

__all__ = ["create_app", "run_server", "ViewerConnection", "ViewerState"]
