"""Signal Monitor: live trading-signal registry with WebSocket fanout."""

__version__ = "1.0.0"
