"""Configuration for the signal registry and its expiry sweeper."""

import enum
from dataclasses import dataclass


class Timeframe(str, enum.Enum):
    """Chart timeframes producers label their signals with.

    Producers are not restricted to these labels.
    """
    M1 = "M1"
    M5 = "M5"
    M15 = "M15"
    M30 = "M30"
    H1 = "H1"
    H4 = "H4"
    D1 = "D1"
    W1 = "W1"
    MN1 = "MN1"


# Timeframes counted in the dashboard summary line, shown even at zero
SUMMARY_TIMEFRAMES = (Timeframe.H1, Timeframe.M30)


@dataclass
class RegistryConfig:
    """Timing configuration for signal expiry."""

    signal_timeout_ms: int = 120_000  # drop a signal not refreshed for 2 minutes
    sweep_interval_ms: int = 5_000

    def __post_init__(self):
        if self.signal_timeout_ms <= 0:
            raise ValueError("signal_timeout_ms must be positive")
        if self.sweep_interval_ms <= 0:
            raise ValueError("sweep_interval_ms must be positive")


DEFAULT_REGISTRY_CONFIG = RegistryConfig()
