"""Tests for viewer channels and the viewer registry."""

import asyncio

import pytest

from signal_monitor.viewers.channel import ViewerChannel
from signal_monitor.viewers.config import (
    CLOSE_GOING_AWAY,
    DEFAULT_VIEWER_CONFIG,
    ConnectionState,
    ViewerConfig,
)
from signal_monitor.viewers.registry import ViewerRegistry

from conftest import FakeTransport


class StuckTransport(FakeTransport):
    """Transport whose sends never complete."""

    async def send_text(self, data: str) -> None:
        await asyncio.Event().wait()


# ── Config Tests ─────────────────────────────────────────────────────


class TestViewerConfig:
    """Tests for enums and ViewerConfig defaults."""

    def test_connection_state_values(self):
        assert ConnectionState.CONNECTING.value == "connecting"
        assert ConnectionState.CONNECTED.value == "connected"
        assert ConnectionState.DISCONNECTING.value == "disconnecting"
        assert ConnectionState.DISCONNECTED.value == "disconnected"
        assert len(ConnectionState) == 4

    def test_default_config(self):
        assert DEFAULT_VIEWER_CONFIG.max_viewers == 10_000
        assert DEFAULT_VIEWER_CONFIG.outbox_size == 8
        assert DEFAULT_VIEWER_CONFIG.close_flush_timeout_s == 1.0

    def test_close_codes(self):
        assert CLOSE_GOING_AWAY == 1001


# ── ViewerChannel Tests ──────────────────────────────────────────────


class TestViewerChannel:
    """Tests for channel lifecycle and delivery."""

    def test_new_channel_is_not_open(self):
        channel = ViewerChannel(FakeTransport())
        assert channel.state == ConnectionState.CONNECTING
        assert channel.is_open is False
        assert len(channel.connection_id) == 16

    def test_offer_before_open_is_refused(self):
        channel = ViewerChannel(FakeTransport())
        assert channel.offer("hello") is False

    @pytest.mark.asyncio
    async def test_offer_delivers_in_order(self):
        transport = FakeTransport()
        channel = ViewerChannel(transport)
        channel.open()
        assert channel.offer("one") is True
        assert channel.offer("two") is True
        await channel.flush()
        assert transport.sent == ["one", "two"]
        assert channel.messages_sent == 2
        channel.detach()

    @pytest.mark.asyncio
    async def test_full_outbox_drops_oldest(self):
        transport = FakeTransport()
        channel = ViewerChannel(transport, outbox_size=2)
        channel.open()
        # Writer has not run yet, so all three land in the outbox
        channel.offer("a")
        channel.offer("b")
        channel.offer("c")
        assert channel.pending == 2
        await channel.flush()
        assert transport.sent == ["b", "c"]
        assert channel.messages_dropped == 1
        channel.detach()

    @pytest.mark.asyncio
    async def test_send_failure_closes_only_channel(self):
        channel = ViewerChannel(FakeTransport(fail=True))
        channel.open()
        channel.offer("x")
        await channel.flush()
        assert channel.state == ConnectionState.DISCONNECTED
        assert channel.offer("y") is False

    @pytest.mark.asyncio
    async def test_close_closes_transport(self):
        transport = FakeTransport()
        channel = ViewerChannel(transport)
        channel.open()
        await channel.close(code=CLOSE_GOING_AWAY, reason="bye")
        assert transport.closed_with == (CLOSE_GOING_AWAY, "bye")
        assert channel.state == ConnectionState.DISCONNECTED
        assert channel.offer("late") is False

    @pytest.mark.asyncio
    async def test_close_delivers_queued_messages_first(self):
        transport = FakeTransport()
        channel = ViewerChannel(transport)
        channel.open()
        channel.offer("last snapshot")
        await channel.close(code=CLOSE_GOING_AWAY)
        assert transport.sent == ["last snapshot"]
        assert transport.closed_with[0] == CLOSE_GOING_AWAY

    @pytest.mark.asyncio
    async def test_close_gives_up_on_stuck_viewer(self):
        transport = StuckTransport()
        channel = ViewerChannel(transport)
        channel.open()
        channel.offer("never delivered")
        await channel.close(flush_timeout=0.05)
        assert transport.closed_with is not None
        assert channel.state == ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_close_without_flush(self):
        transport = FakeTransport()
        channel = ViewerChannel(transport)
        channel.open()
        channel.offer("dropped")
        await channel.close(flush_timeout=0)
        assert transport.sent == []
        assert channel.pending == 0

    @pytest.mark.asyncio
    async def test_close_twice_is_noop(self):
        transport = FakeTransport()
        channel = ViewerChannel(transport)
        channel.open()
        await channel.close()
        transport.closed_with = None
        await channel.close()
        assert transport.closed_with is None

    @pytest.mark.asyncio
    async def test_detach_discards_pending(self):
        channel = ViewerChannel(FakeTransport())
        channel.open()
        channel.offer("a")
        channel.detach()
        assert channel.pending == 0
        assert channel.state == ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_offer_from_another_thread(self):
        transport = FakeTransport()
        channel = ViewerChannel(transport)
        channel.open()
        accepted = await asyncio.to_thread(channel.offer, "threaded")
        assert accepted is True
        # Let the hand-off callback run before waiting on the outbox
        await asyncio.sleep(0)
        await channel.flush()
        assert transport.sent == ["threaded"]
        channel.detach()

    def test_to_dict(self):
        channel = ViewerChannel(FakeTransport(), client="127.0.0.1:5000")
        data = channel.to_dict()
        assert data["client"] == "127.0.0.1:5000"
        assert data["state"] == "connecting"
        assert data["messages_sent"] == 0
        assert data["pending"] == 0


# ── ViewerRegistry Tests ─────────────────────────────────────────────


class TestViewerRegistry:
    """Tests for the viewer registry."""

    def setup_method(self):
        self.viewers = ViewerRegistry()

    def test_register_and_get(self):
        channel = self.viewers.register(ViewerChannel(FakeTransport()))
        assert self.viewers.get(channel.connection_id) is channel
        assert self.viewers.count() == 1

    def test_unregister(self):
        channel = self.viewers.register(ViewerChannel(FakeTransport()))
        assert self.viewers.unregister(channel.connection_id) is True
        assert self.viewers.unregister(channel.connection_id) is False
        assert self.viewers.count() == 0

    def test_max_viewers_enforced(self):
        viewers = ViewerRegistry(ViewerConfig(max_viewers=1))
        viewers.register(ViewerChannel(FakeTransport()))
        with pytest.raises(ConnectionError):
            viewers.register(ViewerChannel(FakeTransport()))

    def test_prune_closed_keeps_connecting(self):
        pending = self.viewers.register(ViewerChannel(FakeTransport()))
        closed = self.viewers.register(ViewerChannel(FakeTransport()))
        closed.detach()
        assert self.viewers.prune_closed() == 1
        assert self.viewers.get(pending.connection_id) is pending
        assert self.viewers.get(closed.connection_id) is None

    @pytest.mark.asyncio
    async def test_open_channels(self):
        opened = self.viewers.register(ViewerChannel(FakeTransport()))
        self.viewers.register(ViewerChannel(FakeTransport()))
        opened.open()
        assert self.viewers.open_channels() == [opened]
        opened.detach()

    @pytest.mark.asyncio
    async def test_close_all(self):
        transports = [FakeTransport(), FakeTransport()]
        for t in transports:
            self.viewers.register(ViewerChannel(t)).open()
        closed = await self.viewers.close_all()
        assert closed == 2
        assert self.viewers.count() == 0
        for t in transports:
            assert t.closed_with == (CLOSE_GOING_AWAY, "Server shutting down")

    @pytest.mark.asyncio
    async def test_close_all_flushes_pending_snapshots(self):
        transport = FakeTransport()
        channel = self.viewers.register(ViewerChannel(transport))
        channel.open()
        channel.offer("final")
        await self.viewers.close_all()
        assert transport.sent == ["final"]

    @pytest.mark.asyncio
    async def test_close_all_empty(self):
        assert await self.viewers.close_all() == 0

    def test_get_stats(self):
        self.viewers.register(ViewerChannel(FakeTransport()))
        stats = self.viewers.get_stats()
        assert stats["total_viewers"] == 1
        assert stats["open_viewers"] == 0
        assert stats["max_viewers"] == 10_000
