"""Signal entry model and ingestion normalization rules."""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

KEY_SEPARATOR = "|"
UNKNOWN_TREND = "-"
# Producers send "-" when they have no direction to report
_TRADE_TYPE_PLACEHOLDERS = ("", "-")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(ts: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def make_key(symbol: str, timeframe: str) -> str:
    """Build the registry key for a (symbol, timeframe) pair.

    Raises:
        ValueError: Either label contains the key separator, which would
            let two different pairs share one key.
    """
    if KEY_SEPARATOR in symbol or KEY_SEPARATOR in timeframe:
        raise ValueError(f"symbol and timeframe must not contain {KEY_SEPARATOR!r}")
    return f"{symbol}{KEY_SEPARATOR}{timeframe}"


def derive_trade_type(symbol: str, trade_type: Optional[str]) -> str:
    """Normalize a producer's trade type, defaulting it from the symbol.

    A missing or blank trade type becomes BUY for "crash" instruments
    (case-insensitive substring of the symbol) and SELL for everything
    else. A present trade type is upper-cased.
    """
    if trade_type is not None and trade_type.strip() not in _TRADE_TYPE_PLACEHOLDERS:
        return trade_type.strip().upper()
    return "BUY" if "crash" in symbol.lower() else "SELL"


def normalize_trend(value: Optional[str]) -> str:
    if value is None or not str(value).strip():
        return UNKNOWN_TREND
    return str(value).strip()


def normalize_amount(value: Any) -> float:
    if value is None:
        return 0.0
    amount = float(value)
    if not math.isfinite(amount):
        raise ValueError(f"amount must be finite, got {value!r}")
    return amount


@dataclass(frozen=True)
class SignalEntry:
    """Latest known state of one instrument on one timeframe.

    Entries are immutable; the registry replaces the whole object on
    every update so a reader never observes a half-written entry.
    """

    symbol: str
    timeframe: str
    trade_type: str
    h4_trend: str = UNKNOWN_TREND
    d1_trend: str = UNKNOWN_TREND
    min_lot: float = 0.0
    min_margin: float = 0.0
    valid_since: datetime = field(default_factory=_now)
    last_update: float = 0.0  # epoch ms, expiry only

    @property
    def key(self) -> str:
        return make_key(self.symbol, self.timeframe)

    def age_ms(self, now_ms: float) -> float:
        return now_ms - self.last_update

    def to_wire(self) -> dict:
        """Convert to the indicator shape pushed to viewers."""
        return {
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "type": self.trade_type,
            "H4": self.h4_trend,
            "D1": self.d1_trend,
            "validSince": to_iso(self.valid_since),
            "min_lot": self.min_lot,
            "min_margin": self.min_margin,
        }
