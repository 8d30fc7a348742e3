"""
Shared pytest fixtures for the Song Director test suite.

Provides a fresh section registry per test, the FastAPI application and
TestClient bound to it, and an in-memory WebSocket double for driving
ViewerConnection directly.
"""

import asyncio
import logging
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, Generator, List, Optional

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from song_director.core.registry import ConnectionRegistry  # noqa: E402
from song_director.web.api_server import create_app  # noqa: E402


# =============================================================================
# Section Store Fixtures
# =============================================================================


@pytest.fixture
def registry() -> Generator[ConnectionRegistry, None, None]:
    """Independent section store for one test."""
    reg = ConnectionRegistry()
    yield reg
    reg.close()


# =============================================================================
# Web Application Fixtures
# =============================================================================


@pytest.fixture
def app(registry):
    """FastAPI application bound to the test registry."""
    return create_app(registry=registry, send_timeout=2.0)


@pytest.fixture
def test_client(app):
    """TestClient sharing one event loop between HTTP calls and WebSockets."""
    from fastapi.testclient import TestClient

    with TestClient(app) as client:
        yield client


# =============================================================================
# WebSocket Double
# =============================================================================


class FakeWebSocket:
    """Minimal stand-in for a Starlette WebSocket."""

    def __init__(self, fail_after: Optional[int] = None, send_delay: float = 0.0):
        """
        Args:
            fail_after: Raise on every send once this many frames were sent
            send_delay: Seconds each send takes
        """
        self.client = SimpleNamespace(host="127.0.0.1", port=50000)
        self.fail_after = fail_after
        self.send_delay = send_delay

        self.accepted = False
        self.closed_code: Optional[int] = None
        self.sent: List[str] = []
        self._inbound: "asyncio.Queue[Dict]" = asyncio.Queue()
        self._sent_event = asyncio.Event()

    async def accept(self):
        self.accepted = True

    async def send_text(self, text: str):
        if self.send_delay:
            await asyncio.sleep(self.send_delay)
        if self.fail_after is not None and len(self.sent) >= self.fail_after:
            raise RuntimeError("socket is gone")
        self.sent.append(text)
        self._sent_event.set()

    async def receive(self) -> Dict:
        return await self._inbound.get()

    async def close(self, code: int = 1000):
        self.closed_code = code

    def peer_text(self, text: str) -> None:
        self._inbound.put_nowait({"type": "websocket.receive", "text": text})

    def peer_close(self) -> None:
        self._inbound.put_nowait({"type": "websocket.disconnect", "code": 1000})

    async def wait_for_frames(self, count: int, timeout: float = 2.0) -> List[str]:
        """Wait until at least ``count`` frames have been sent."""

        async def _wait():
            while len(self.sent) < count:
                self._sent_event.clear()
                await self._sent_event.wait()

        await asyncio.wait_for(_wait(), timeout)
        return self.sent


@pytest.fixture
def fake_websocket_factory():
    """Build FakeWebSocket instances inside the running test loop."""
    return FakeWebSocket


@pytest.fixture
def restore_root_logger():
    """Undo setup_logging() side effects on the root logger."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield root_logger
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers = handlers
    root_logger.setLevel(level)
