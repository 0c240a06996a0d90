"""Configuration for viewer channels."""

from dataclasses import dataclass
from enum import Enum


class ConnectionState(str, Enum):
    """Lifecycle states for a viewer channel."""
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"
    DISCONNECTED = "disconnected"


# WebSocket close codes used by the server
CLOSE_GOING_AWAY = 1001
CLOSE_TRY_AGAIN_LATER = 1013


@dataclass
class ViewerConfig:
    """Limits and buffering for connected viewers."""

    max_viewers: int = 10_000
    # Queued snapshots per viewer; the oldest is dropped when full
    outbox_size: int = 8
    shutdown_reason: str = "Server shutting down"
    # Seconds a closing channel waits for queued snapshots to go out
    close_flush_timeout_s: float = 1.0


DEFAULT_VIEWER_CONFIG = ViewerConfig()
