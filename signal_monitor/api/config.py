"""API Configuration.

Settings for the producer HTTP surface and the viewer WebSocket.
"""

from dataclasses import dataclass, field


@dataclass
class APIConfig:
    """Core API settings."""

    title: str = "Signal Monitor"
    version: str = "1.0.0"
    description: str = "Live trading-signal registry with WebSocket fanout"
    prefix: str = "/api/v1"
    docs_url: str = "/docs"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    cors_methods: list[str] = field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    cors_headers: list[str] = field(default_factory=lambda: ["*"])


DEFAULT_API_CONFIG = APIConfig()
