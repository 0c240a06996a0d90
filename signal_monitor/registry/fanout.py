"""Broadcast Fanout: pushes registry snapshots to viewer channels.

Every push is a full snapshot, never a delta, so a viewer that missed
one message is made whole by the next.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from signal_monitor.registry.models import to_iso
from signal_monitor.registry.store import SignalRegistry
from signal_monitor.viewers.channel import ViewerChannel
from signal_monitor.viewers.registry import ViewerRegistry

logger = logging.getLogger(__name__)

SNAPSHOT_MESSAGE_TYPE = "signals_update"


@dataclass
class SnapshotMessage:
    """The full signal set at one instant, in wire format."""

    indicators: list[dict] = field(default_factory=list)
    timestamp: Optional[datetime] = None

    @property
    def count(self) -> int:
        return len(self.indicators)

    def to_wire(self) -> dict:
        return {
            "type": SNAPSHOT_MESSAGE_TYPE,
            "indicators": self.indicators,
            "count": self.count,
            "timestamp": to_iso(self.timestamp or datetime.now(timezone.utc)),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_wire(), allow_nan=False)


class BroadcastFanout:
    """Offer registry snapshots to every open viewer channel.

    Example::

        fanout = BroadcastFanout(registry, viewers)
        registry.upsert("EURUSD", "H1", trade_type="sell")
        fanout.broadcast_snapshot()
    """

    def __init__(self, registry: SignalRegistry, viewers: ViewerRegistry):
        self._registry = registry
        self._viewers = viewers
        self._broadcasts = 0

    @property
    def total_broadcasts(self) -> int:
        return self._broadcasts

    def build_snapshot(self) -> SnapshotMessage:
        """Build the snapshot message from the registry's current state."""
        entries = self._registry.snapshot()
        return SnapshotMessage(
            indicators=[entry.to_wire() for entry in entries],
            timestamp=datetime.now(timezone.utc),
        )

    def broadcast_snapshot(self) -> int:
        """Offer the current snapshot to every open channel.

        Channels that are not open are skipped and pruned afterwards.

        Returns:
            Number of channels the snapshot was handed to.
        """
        snapshot = self.build_snapshot()
        payload = snapshot.to_json()

        delivered = 0
        for channel in self._viewers.channels():
            if channel.offer(payload):
                delivered += 1

        self._viewers.prune_closed()
        self._broadcasts += 1
        logger.debug(
            f"Broadcast {snapshot.count} signal(s) to {delivered} viewer(s)",
            extra={"signal_count": snapshot.count, "viewer_count": delivered},
        )
        return delivered

    def send_snapshot(self, channel: ViewerChannel) -> bool:
        """Offer the current snapshot to a single channel."""
        return channel.offer(self.build_snapshot().to_json())
