"""Pytest configuration and shared fixtures."""

import logging
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# 2023-11-14T22:13:20Z
START_MS = 1_700_000_000_000.0


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start_ms: float = START_MS):
        self.now = start_ms

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeTransport:
    """Stand-in for a WebSocket: records what was sent and how it was closed."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[str] = []
        self.closed_with = None

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise ConnectionResetError("peer went away")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason=None) -> None:
        self.closed_with = (code, reason)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture(autouse=True)
def reset_logging_and_settings():
    """Restore root logging and the cached settings after each test."""
    from signal_monitor.settings import get_settings

    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    get_settings.cache_clear()

    yield

    root.handlers[:] = original_handlers
    root.setLevel(original_level)
    get_settings.cache_clear()
