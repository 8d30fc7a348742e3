"""
Unit tests for ViewerConnection, driven through an in-memory socket.
"""

import asyncio

import anyio
import pytest

from song_director.core.section_state import SectionState
from song_director.web.section_socket import GOING_AWAY, ViewerConnection, ViewerState


async def start_viewer(registry, websocket, send_timeout=None):
    connection = ViewerConnection(websocket, registry, send_timeout=send_timeout)
    task = asyncio.ensure_future(connection.run())
    return connection, task


async def finish_viewer(websocket, task):
    websocket.peer_close()
    await asyncio.wait_for(task, 1.0)


class TestStreaming:
    """Initial push and change propagation."""

    @pytest.mark.asyncio
    async def test_initial_push_on_connect(self, registry, fake_websocket_factory):
        registry.cell.replace(SectionState("V", 3))
        ws = fake_websocket_factory()

        connection, task = await start_viewer(registry, ws)
        assert await ws.wait_for_frames(1) == ["V3"]

        assert ws.accepted
        assert connection.state is ViewerState.STREAMING
        assert registry.active_connections == 1
        await finish_viewer(ws, task)

    @pytest.mark.asyncio
    async def test_empty_cue_is_sent_as_empty_frame(self, registry, fake_websocket_factory):
        ws = fake_websocket_factory()

        _, task = await start_viewer(registry, ws)
        assert await ws.wait_for_frames(1) == [""]
        await finish_viewer(ws, task)

    @pytest.mark.asyncio
    async def test_change_is_pushed(self, registry, fake_websocket_factory):
        ws = fake_websocket_factory()
        connection, task = await start_viewer(registry, ws)
        await ws.wait_for_frames(1)

        registry.cell.replace(SectionState("C"))

        assert await ws.wait_for_frames(2) == ["", "C"]
        assert connection.messages_sent == 2
        await finish_viewer(ws, task)

    @pytest.mark.asyncio
    async def test_burst_of_writes_coalesces_to_latest(self, registry, fake_websocket_factory):
        ws = fake_websocket_factory()
        _, task = await start_viewer(registry, ws)
        await ws.wait_for_frames(1)

        for section in (SectionState("V"), SectionState("V", 1), SectionState("V", 2)):
            registry.cell.replace(section)

        await ws.wait_for_frames(2)
        await asyncio.sleep(0.05)
        assert ws.sent == ["", "V2"]
        await finish_viewer(ws, task)

    @pytest.mark.asyncio
    async def test_inbound_frames_are_ignored(self, registry, fake_websocket_factory):
        ws = fake_websocket_factory()
        connection, task = await start_viewer(registry, ws)
        await ws.wait_for_frames(1)

        ws.peer_text("hello")
        registry.cell.replace(SectionState("B"))

        assert await ws.wait_for_frames(2) == ["", "B"]
        assert connection.state is ViewerState.STREAMING
        await finish_viewer(ws, task)


class TestTermination:
    """Peer close, send failures and producer shutdown."""

    @pytest.mark.asyncio
    async def test_peer_close_ends_connection(self, registry, fake_websocket_factory):
        ws = fake_websocket_factory()
        connection, task = await start_viewer(registry, ws)
        await ws.wait_for_frames(1)

        await finish_viewer(ws, task)

        assert connection.state is ViewerState.CLOSED
        assert registry.active_connections == 0
        assert registry.signal.watcher_count == 0

    @pytest.mark.asyncio
    async def test_peer_close_does_not_affect_others(self, registry, fake_websocket_factory):
        leaving = fake_websocket_factory()
        staying = fake_websocket_factory()
        leaving_connection, leaving_task = await start_viewer(registry, leaving)
        staying_connection, staying_task = await start_viewer(registry, staying)
        await leaving.wait_for_frames(1)
        await staying.wait_for_frames(1)

        await finish_viewer(leaving, leaving_task)
        await asyncio.sleep(0.05)

        assert leaving_connection.state is ViewerState.CLOSED
        assert staying.sent == [""]
        assert staying_connection.state is ViewerState.STREAMING
        assert registry.active_connections == 1

        registry.cell.replace(SectionState("W", 2))
        assert await staying.wait_for_frames(2) == ["", "W2"]
        await finish_viewer(staying, staying_task)

    @pytest.mark.asyncio
    async def test_cancel_scope_exit_is_absorbed(self, registry, fake_websocket_factory):
        ws = fake_websocket_factory()
        connection = ViewerConnection(ws, registry)

        with anyio.move_on_after(0.1) as scope:
            await connection.run()

        assert scope.cancelled_caught
        assert ws.sent == [""]
        assert connection.state is ViewerState.CLOSED
        assert registry.active_connections == 0
        assert registry.signal.watcher_count == 0

    @pytest.mark.asyncio
    async def test_failed_initial_send_closes_connection(self, registry, fake_websocket_factory):
        ws = fake_websocket_factory(fail_after=0)

        connection, task = await start_viewer(registry, ws)
        await asyncio.wait_for(task, 1.0)

        assert ws.sent == []
        assert connection.state is ViewerState.CLOSED
        assert registry.active_connections == 0

    @pytest.mark.asyncio
    async def test_failing_viewer_does_not_affect_others(self, registry, fake_websocket_factory):
        broken = fake_websocket_factory(fail_after=1)
        healthy = fake_websocket_factory()
        broken_connection, broken_task = await start_viewer(registry, broken)
        _, healthy_task = await start_viewer(registry, healthy)
        await broken.wait_for_frames(1)
        await healthy.wait_for_frames(1)

        registry.cell.replace(SectionState("P"))

        await asyncio.wait_for(broken_task, 1.0)
        assert await healthy.wait_for_frames(2) == ["", "P"]
        assert broken_connection.state is ViewerState.CLOSED
        assert registry.active_connections == 1

        registry.cell.replace(SectionState("E"))
        assert await healthy.wait_for_frames(3) == ["", "P", "E"]
        await finish_viewer(healthy, healthy_task)

    @pytest.mark.asyncio
    async def test_send_timeout_closes_connection(self, registry, fake_websocket_factory):
        ws = fake_websocket_factory(send_delay=1.0)

        connection, task = await start_viewer(registry, ws, send_timeout=0.05)
        await asyncio.wait_for(task, 1.0)

        assert ws.sent == []
        assert connection.state is ViewerState.CLOSED

    @pytest.mark.asyncio
    async def test_signal_shutdown_closes_socket_going_away(self, registry, fake_websocket_factory):
        ws = fake_websocket_factory()
        connection, task = await start_viewer(registry, ws)
        await ws.wait_for_frames(1)

        registry.close()
        await asyncio.wait_for(task, 1.0)

        assert ws.closed_code == GOING_AWAY
        assert connection.state is ViewerState.CLOSED
        assert registry.active_connections == 0

    def test_peer_name_from_client_address(self, registry, fake_websocket_factory):
        connection = ViewerConnection(fake_websocket_factory(), registry, send_timeout=0)

        assert connection.peer == "127.0.0.1:50000"
        assert connection.send_timeout is None
        assert connection.state is ViewerState.CONNECTING
