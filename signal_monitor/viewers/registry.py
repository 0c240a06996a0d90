"""Viewer registry: the set of connected viewer channels the fanout iterates."""

import asyncio
import logging
import threading
from typing import Dict, List, Optional

from signal_monitor.viewers.channel import ViewerChannel
from signal_monitor.viewers.config import CLOSE_GOING_AWAY, ConnectionState, ViewerConfig

logger = logging.getLogger(__name__)


class ViewerRegistry:
    """Thread-safe registry of viewer channels.

    Channels that closed are not removed eagerly by the writer; the
    fanout prunes them lazily after each broadcast, and the socket
    handler unregisters its own channel on disconnect.
    """

    def __init__(self, config: Optional[ViewerConfig] = None):
        self._config = config or ViewerConfig()
        self._channels: Dict[str, ViewerChannel] = {}
        self._lock = threading.Lock()

    @property
    def config(self) -> ViewerConfig:
        return self._config

    def register(self, channel: ViewerChannel) -> ViewerChannel:
        """Add a channel. Raises ConnectionError when the viewer limit is reached."""
        with self._lock:
            if len(self._channels) >= self._config.max_viewers:
                raise ConnectionError(
                    f"Max viewers ({self._config.max_viewers}) exceeded"
                )
            self._channels[channel.connection_id] = channel

        logger.info(
            "Registered viewer %s from %s",
            channel.connection_id,
            channel.client or "unknown",
        )
        return channel

    def unregister(self, connection_id: str) -> bool:
        """Remove a channel from the registry. Returns True if found."""
        with self._lock:
            channel = self._channels.pop(connection_id, None)
        if channel is None:
            return False
        logger.info("Unregistered viewer %s", connection_id)
        return True

    def get(self, connection_id: str) -> Optional[ViewerChannel]:
        with self._lock:
            return self._channels.get(connection_id)

    def channels(self) -> List[ViewerChannel]:
        """Point-in-time list of registered channels."""
        with self._lock:
            return list(self._channels.values())

    def open_channels(self) -> List[ViewerChannel]:
        return [c for c in self.channels() if c.is_open]

    def prune_closed(self) -> int:
        """Drop disconnected channels. Returns how many were dropped."""
        with self._lock:
            closed = [
                cid for cid, channel in self._channels.items()
                if channel.state == ConnectionState.DISCONNECTED
            ]
            for cid in closed:
                del self._channels[cid]
        if closed:
            logger.debug("Pruned %d closed viewer channel(s)", len(closed))
        return len(closed)

    def count(self) -> int:
        with self._lock:
            return len(self._channels)

    async def close_all(self, code: int = CLOSE_GOING_AWAY, reason: Optional[str] = None) -> int:
        """Close every channel gracefully and empty the registry."""
        with self._lock:
            channels = list(self._channels.values())
            self._channels.clear()

        results = await asyncio.gather(
            *(c.close(
                code=code,
                reason=reason or self._config.shutdown_reason,
                flush_timeout=self._config.close_flush_timeout_s,
            ) for c in channels),
            return_exceptions=True,
        )
        for channel, result in zip(channels, results):
            if isinstance(result, Exception):
                logger.warning(f"Closing viewer {channel.connection_id} failed: {result}")

        if channels:
            logger.info("Closed %d viewer channel(s)", len(channels))
        return len(channels)

    def get_stats(self) -> dict:
        """Return a summary of viewer statistics."""
        channels = self.channels()
        return {
            "total_viewers": len(channels),
            "open_viewers": sum(1 for c in channels if c.is_open),
            "messages_sent": sum(c.messages_sent for c in channels),
            "messages_dropped": sum(c.messages_dropped for c in channels),
            "max_viewers": self._config.max_viewers,
        }
