"""HTTP and WebSocket surface of the signal monitor.

- POST /                   producer events (signal / remove_signal)
- WS   / and /ws           viewer snapshot push
- GET  /api/v1/signals     current snapshot
- GET  /health             liveness and component stats

Example:
    from signal_monitor.api import create_app
    app = create_app()
"""

from signal_monitor.api.app import create_app
from signal_monitor.api.config import APIConfig, DEFAULT_API_CONFIG

__all__ = [
    "create_app",
    "APIConfig",
    "DEFAULT_API_CONFIG",
]
