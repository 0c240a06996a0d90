"""Signal Read Routes.

Request/response access to the same snapshot viewers receive over
the socket, plus the per-timeframe counts shown in the dashboard header.
"""

import logging

from fastapi import APIRouter, Request

from signal_monitor.api.models import SignalSummary, SnapshotResponse
from signal_monitor.registry.config import SUMMARY_TIMEFRAMES

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/signals", tags=["Signals"])


def format_summary(by_timeframe: dict[str, int]) -> str:
    """Render the dashboard header, e.g. "3 Valid Signals: (H1: 2 | M30: 1)".

    Only the summary timeframes are counted and listed; signals on
    other timeframes are left out of the header.
    """
    counts = [(tf.value, by_timeframe.get(tf.value, 0)) for tf in SUMMARY_TIMEFRAMES]
    parts = " | ".join(f"{tf}: {n}" for tf, n in counts)
    return f"{sum(n for _, n in counts)} Valid Signals: ({parts})"


@router.get("", response_model=SnapshotResponse)
async def get_signals(request: Request) -> dict:
    """Current snapshot, same shape as the WebSocket push."""
    return request.app.state.fanout.build_snapshot().to_wire()


@router.get("/summary", response_model=SignalSummary)
async def get_summary(request: Request) -> SignalSummary:
    """Total and per-timeframe signal counts."""
    registry = request.app.state.registry
    by_timeframe = registry.count_by_timeframe()
    return SignalSummary(
        count=sum(by_timeframe.values()),
        by_timeframe=by_timeframe,
        label=format_summary(by_timeframe),
    )
