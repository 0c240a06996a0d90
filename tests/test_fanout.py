"""Tests for snapshot building and broadcast fanout."""

import json

import pytest

from signal_monitor.registry.fanout import (
    SNAPSHOT_MESSAGE_TYPE,
    BroadcastFanout,
    SnapshotMessage,
)
from signal_monitor.registry.store import SignalRegistry
from signal_monitor.viewers.channel import ViewerChannel
from signal_monitor.viewers.registry import ViewerRegistry

from conftest import FakeClock, FakeTransport


class TestSnapshotMessage:
    """Tests for the snapshot wire format."""

    def test_empty_snapshot(self):
        wire = SnapshotMessage().to_wire()
        assert wire["type"] == SNAPSHOT_MESSAGE_TYPE == "signals_update"
        assert wire["indicators"] == []
        assert wire["count"] == 0
        assert wire["timestamp"].endswith("Z")

    def test_count_matches_indicators(self):
        msg = SnapshotMessage(indicators=[{"symbol": "A"}, {"symbol": "B"}])
        assert msg.count == 2
        assert json.loads(msg.to_json())["count"] == 2

    def test_to_json_refuses_non_finite_numbers(self):
        msg = SnapshotMessage(indicators=[{"symbol": "A", "min_lot": float("inf")}])
        with pytest.raises(ValueError):
            msg.to_json()


class TestBroadcastFanout:
    """Tests for offering snapshots to viewer channels."""

    def setup_method(self):
        self.registry = SignalRegistry(clock=FakeClock())
        self.viewers = ViewerRegistry()
        self.fanout = BroadcastFanout(self.registry, self.viewers)

    def _open_channel(self, transport):
        channel = self.viewers.register(ViewerChannel(transport))
        channel.open()
        return channel

    def test_build_snapshot_reflects_registry(self):
        self.registry.upsert("XAUUSD", "H1", trade_type="buy", h4_trend="up", d1_trend="down")
        snapshot = self.fanout.build_snapshot()
        assert snapshot.count == 1
        indicator = snapshot.indicators[0]
        assert indicator["symbol"] == "XAUUSD"
        assert indicator["type"] == "BUY"
        assert indicator["H4"] == "up"
        assert indicator["D1"] == "down"

    def test_build_snapshot_is_ordered(self):
        self.registry.upsert("XAUUSD", "H1")
        self.registry.upsert("EURUSD", "M30")
        symbols = [i["symbol"] for i in self.fanout.build_snapshot().indicators]
        assert symbols == ["EURUSD", "XAUUSD"]

    def test_broadcast_without_viewers(self):
        assert self.fanout.broadcast_snapshot() == 0
        assert self.fanout.total_broadcasts == 1

    @pytest.mark.asyncio
    async def test_broadcast_reaches_every_open_channel(self):
        transports = [FakeTransport(), FakeTransport()]
        channels = [self._open_channel(t) for t in transports]
        self.registry.upsert("XAUUSD", "H1")

        assert self.fanout.broadcast_snapshot() == 2
        for channel in channels:
            await channel.flush()
        for t in transports:
            assert json.loads(t.sent[-1])["count"] == 1
        for channel in channels:
            channel.detach()

    @pytest.mark.asyncio
    async def test_broadcast_skips_unopened_channels(self):
        self.viewers.register(ViewerChannel(FakeTransport()))
        assert self.fanout.broadcast_snapshot() == 0
        # Still connecting, so not pruned
        assert self.viewers.count() == 1

    @pytest.mark.asyncio
    async def test_failed_viewer_does_not_affect_others(self):
        good = FakeTransport()
        good_channel = self._open_channel(good)
        bad_channel = self._open_channel(FakeTransport(fail=True))

        self.fanout.broadcast_snapshot()
        await good_channel.flush()
        await bad_channel.flush()
        assert len(good.sent) == 1
        assert bad_channel.is_open is False

        # Next broadcast skips and prunes the failed channel
        assert self.fanout.broadcast_snapshot() == 1
        assert self.viewers.get(bad_channel.connection_id) is None
        await good_channel.flush()
        assert len(good.sent) == 2
        good_channel.detach()

    @pytest.mark.asyncio
    async def test_send_snapshot_targets_one_channel(self):
        target = FakeTransport()
        other = FakeTransport()
        target_channel = self._open_channel(target)
        other_channel = self._open_channel(other)

        assert self.fanout.send_snapshot(target_channel) is True
        await target_channel.flush()
        await other_channel.flush()
        assert len(target.sent) == 1
        assert other.sent == []
        assert self.fanout.total_broadcasts == 0
        target_channel.detach()
        other_channel.detach()
