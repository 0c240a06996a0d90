"""Signal Registry.

The in-memory, time-bounded store of the latest signal per
(symbol, timeframe), its expiry sweeper, and the fanout that pushes
full snapshots to connected viewers.
"""

from signal_monitor.registry.config import (
    RegistryConfig,
    SUMMARY_TIMEFRAMES,
    Timeframe,
    DEFAULT_REGISTRY_CONFIG,
)
from signal_monitor.registry.models import (
    SignalEntry,
    UNKNOWN_TREND,
    derive_trade_type,
    make_key,
)
from signal_monitor.registry.store import SignalRegistry
from signal_monitor.registry.fanout import BroadcastFanout, SnapshotMessage
from signal_monitor.registry.sweeper import ExpirySweeper

__all__ = [
    # Config
    "RegistryConfig",
    "SUMMARY_TIMEFRAMES",
    "Timeframe",
    "DEFAULT_REGISTRY_CONFIG",
    # Models
    "SignalEntry",
    "UNKNOWN_TREND",
    "derive_trade_type",
    "make_key",
    # Core
    "SignalRegistry",
    "BroadcastFanout",
    "SnapshotMessage",
    "ExpirySweeper",
]
