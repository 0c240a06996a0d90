"""Expiry Sweeper: periodically evicts signals producers stopped refreshing.

Runs as an asyncio background task for the lifetime of the app. Ticks
never overlap: a tick that starts while the previous one is still
running is skipped.
"""

import asyncio
import contextlib
import logging
from datetime import datetime, timezone
from typing import Optional

from signal_monitor.logging_config.performance import PerformanceTimer
from signal_monitor.registry.config import DEFAULT_REGISTRY_CONFIG, RegistryConfig
from signal_monitor.registry.fanout import BroadcastFanout
from signal_monitor.registry.store import SignalRegistry

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Evicts expired signals on a fixed interval and broadcasts the result.

    Example:
        sweeper = ExpirySweeper(registry, fanout, RegistryConfig())
        await sweeper.start()
        ...
        await sweeper.stop()
    """

    def __init__(
        self,
        registry: SignalRegistry,
        fanout: BroadcastFanout,
        config: Optional[RegistryConfig] = None,
    ):
        self._registry = registry
        self._fanout = fanout
        self._config = config or DEFAULT_REGISTRY_CONFIG
        self._task: Optional[asyncio.Task] = None
        self._tick_lock = asyncio.Lock()

        self.ticks = 0
        self.skipped_ticks = 0
        self.total_expired = 0
        self.last_sweep_at: Optional[datetime] = None

    @property
    def config(self) -> RegistryConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the periodic sweep task."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name="expiry-sweeper")
        logger.info(
            f"Expiry sweeper started (timeout={self._config.signal_timeout_ms}ms, "
            f"interval={self._config.sweep_interval_ms}ms)"
        )

    async def stop(self) -> None:
        """Stop the sweep task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Expiry sweeper stopped")

    async def sweep_once(self) -> list[str]:
        """Run one expiry pass; broadcast if anything was evicted.

        Returns:
            Keys removed by this pass. Empty if nothing expired or the
            previous pass was still running.
        """
        if self._tick_lock.locked():
            self.skipped_ticks += 1
            logger.warning("Previous expiry sweep still running, skipping tick")
            return []

        async with self._tick_lock:
            now_ms = self._registry.now_ms()
            with PerformanceTimer("expiry_sweep"):
                removed = await asyncio.to_thread(
                    self._registry.expire_older_than,
                    self._config.signal_timeout_ms,
                    now_ms,
                )
            self.ticks += 1
            self.last_sweep_at = datetime.now(timezone.utc)

            if removed:
                self.total_expired += len(removed)
                self._fanout.broadcast_snapshot()
            return removed

    async def _run(self) -> None:
        interval = self._config.sweep_interval_ms / 1000
        while True:
            await asyncio.sleep(interval)
            try:
                await self.sweep_once()
            except Exception:
                logger.exception("Expiry sweep failed")

    def get_stats(self) -> dict:
        return {
            "running": self.is_running,
            "ticks": self.ticks,
            "skipped_ticks": self.skipped_ticks,
            "total_expired": self.total_expired,
            "last_sweep_at": self.last_sweep_at.isoformat() if self.last_sweep_at else None,
        }
