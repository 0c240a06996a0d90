"""Viewer channels: connected dashboards that receive pushed snapshots."""

from signal_monitor.viewers.channel import ViewerChannel, ViewerTransport
from signal_monitor.viewers.config import (
    CLOSE_GOING_AWAY,
    CLOSE_TRY_AGAIN_LATER,
    ConnectionState,
    ViewerConfig,
)
from signal_monitor.viewers.registry import ViewerRegistry

__all__ = [
    "CLOSE_GOING_AWAY",
    "CLOSE_TRY_AGAIN_LATER",
    "ConnectionState",
    "ViewerChannel",
    "ViewerConfig",
    "ViewerRegistry",
    "ViewerTransport",
]
