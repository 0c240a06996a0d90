"""Centralized settings for the signal monitor.

Uses pydantic-settings to load from environment variables (prefixed
SIGNAL_MONITOR_). Defaults: 2 minute signal timeout, 5 second sweep.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Signal monitor settings loaded from environment variables."""

    # --- Server ---
    host: str = "0.0.0.0"
    # Hosting platforms hand the port over as plain PORT
    port: int = Field(
        default=8080,
        validation_alias=AliasChoices("SIGNAL_MONITOR_PORT", "PORT", "port"),
    )

    # --- Registry timing ---
    signal_timeout_ms: int = Field(default=120_000, gt=0)
    sweep_interval_ms: int = Field(default=5_000, gt=0)

    # --- Viewer delivery ---
    outbox_size: int = Field(default=8, ge=1)

    # --- Presentation ---
    static_dir: str = ""
    cors_origins: str = ""

    # --- Logging ---
    log_level: str = "INFO"
    log_format: str = "json"

    model_config = {
        "env_prefix": "SIGNAL_MONITOR_",
        "env_file": ".env",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
