"""API Request/Response Models.

Pydantic schemas for producer events, viewer messages, and the
read-only signal endpoints.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints


# "|" joins symbol and timeframe into the registry key
RequiredLabel = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, pattern=r"^[^|]+$")
]


class EventType(str, Enum):
    """Producer event kinds."""
    SIGNAL = "signal"
    REMOVE_SIGNAL = "remove_signal"


class ViewerMessageType(str, Enum):
    """Messages viewers send over the socket."""
    GET_SIGNALS = "get_signals"
    PING = "ping"


# ─── Producer events ────────────────────────────────────────────────────


class SignalEvent(BaseModel):
    """A producer's latest state for one symbol and timeframe."""

    model_config = ConfigDict(allow_inf_nan=False)

    type: Literal["signal"] = "signal"
    symbol: RequiredLabel
    timeframe: RequiredLabel
    trade_type: Optional[str] = None
    h4_trend: Optional[str] = None
    d1_trend: Optional[str] = None
    min_lot: Optional[float] = None
    min_margin: Optional[float] = None


class RemoveSignalEvent(BaseModel):
    """A producer withdrawing a signal."""

    type: Literal["remove_signal"] = "remove_signal"
    symbol: RequiredLabel
    timeframe: RequiredLabel


class IngestResponse(BaseModel):
    """Acknowledgement returned to producers."""

    success: bool = True
    message: str
    created: Optional[bool] = None
    removed: Optional[bool] = None


# ─── Snapshot ───────────────────────────────────────────────────────────


class IndicatorView(BaseModel):
    """One signal as viewers receive it."""

    symbol: str
    timeframe: str
    type: str
    H4: str
    D1: str
    validSince: str
    min_lot: float
    min_margin: float


class SnapshotResponse(BaseModel):
    """Full signal set at one instant."""

    type: str = "signals_update"
    indicators: list[IndicatorView] = Field(default_factory=list)
    count: int = 0
    timestamp: str


class SignalSummary(BaseModel):
    """Signal counts for the dashboard header."""

    count: int
    by_timeframe: dict[str, int] = Field(default_factory=dict)
    label: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    signals: int = 0
    viewers: dict = Field(default_factory=dict)
    sweeper: dict = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
