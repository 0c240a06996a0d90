"""Signal Registry: the single authoritative store of active signals.

Holds one SignalEntry per (symbol, timeframe) key. Producers upsert and
remove entries, the expiry sweeper evicts stale ones, and the fanout
reads point-in-time snapshots. All of it is serialized on one lock.
"""

import logging
import threading
import time
from collections import Counter
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Optional

from signal_monitor.registry.models import (
    SignalEntry,
    derive_trade_type,
    make_key,
    normalize_amount,
    normalize_trend,
)

logger = logging.getLogger(__name__)


def _epoch_ms() -> float:
    return time.time() * 1000


class SignalRegistry:
    """Thread-safe, time-bounded store of the latest signal per key.

    Example::

        registry = SignalRegistry()
        registry.upsert("XAUUSD", "H1", trade_type="buy", h4_trend="up")
        registry.remove("XAUUSD", "H1")
        expired = registry.expire_older_than(120_000)
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or _epoch_ms
        self._entries: dict[str, SignalEntry] = {}
        self._lock = threading.Lock()

    def now_ms(self) -> float:
        """Current time in epoch milliseconds, from the registry's clock."""
        return self._clock()

    def upsert(
        self,
        symbol: str,
        timeframe: str,
        trade_type: Optional[str] = None,
        h4_trend: Optional[str] = None,
        d1_trend: Optional[str] = None,
        min_lot: Optional[float] = None,
        min_margin: Optional[float] = None,
    ) -> bool:
        """Create or overwrite the entry for (symbol, timeframe).

        valid_since is only set when the key is first created.

        Returns:
            True if a new entry was created, False if one was updated.
        """
        if not symbol or not timeframe:
            raise ValueError("symbol and timeframe are required")

        key = make_key(symbol, timeframe)
        fields = {
            "trade_type": derive_trade_type(symbol, trade_type),
            "h4_trend": normalize_trend(h4_trend),
            "d1_trend": normalize_trend(d1_trend),
            "min_lot": normalize_amount(min_lot),
            "min_margin": normalize_amount(min_margin),
        }

        with self._lock:
            now_ms = self._clock()
            existing = self._entries.get(key)
            if existing is None:
                self._entries[key] = SignalEntry(
                    symbol=symbol,
                    timeframe=timeframe,
                    valid_since=datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc),
                    last_update=now_ms,
                    **fields,
                )
            else:
                self._entries[key] = replace(
                    existing,
                    last_update=max(existing.last_update, now_ms),
                    **fields,
                )

        if existing is None:
            logger.info(f"New signal: {symbol} {timeframe} {fields['trade_type']}", extra={"signal_key": key})
        else:
            logger.debug(f"Updated signal: {symbol} {timeframe}", extra={"signal_key": key})
        return existing is None

    def remove(self, symbol: str, timeframe: str) -> bool:
        """Delete the entry for (symbol, timeframe). Returns True if one existed."""
        key = make_key(symbol, timeframe)
        with self._lock:
            removed = self._entries.pop(key, None) is not None

        if removed:
            logger.info(f"Removed signal: {symbol} {timeframe}", extra={"signal_key": key})
        return removed

    def expire_older_than(self, timeout_ms: float, now_ms: Optional[float] = None) -> list[str]:
        """Evict every entry not updated within timeout_ms of now_ms.

        Returns:
            Keys of the removed entries, possibly empty.
        """
        with self._lock:
            now_ms = self._clock() if now_ms is None else now_ms
            expired = [
                key for key, entry in self._entries.items()
                if entry.age_ms(now_ms) > timeout_ms
            ]
            for key in expired:
                del self._entries[key]

        if expired:
            logger.info(
                f"Expired {len(expired)} signal(s) older than {timeout_ms / 1000:.0f}s",
                extra={"removed_keys": expired},
            )
        return expired

    def snapshot(self) -> list[SignalEntry]:
        """All current entries ordered by symbol, then timeframe."""
        with self._lock:
            entries = list(self._entries.values())
        return sorted(entries, key=lambda e: (e.symbol, e.timeframe))

    def get(self, symbol: str, timeframe: str) -> Optional[SignalEntry]:
        with self._lock:
            return self._entries.get(make_key(symbol, timeframe))

    def count(self) -> int:
        with self._lock:
            return len(self._entries)

    def count_by_timeframe(self) -> dict[str, int]:
        """Number of active entries per timeframe label."""
        with self._lock:
            return dict(Counter(entry.timeframe for entry in self._entries.values()))

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
