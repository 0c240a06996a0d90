"""Viewer WebSocket endpoint: live snapshot push.

Viewers connect at / (or /ws), immediately receive the current
snapshot, and then receive a fresh snapshot after every registry
change. A viewer may send {"type": "get_signals"} for an immediate
refresh of its own view.
"""

import json
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, WebSocket

from signal_monitor.api.models import ViewerMessageType
from signal_monitor.logging_config.context import LogContext
from signal_monitor.registry.fanout import BroadcastFanout
from signal_monitor.viewers.channel import ViewerChannel
from signal_monitor.viewers.config import CLOSE_TRY_AGAIN_LATER
from signal_monitor.viewers.registry import ViewerRegistry

logger = logging.getLogger(__name__)
router = APIRouter(tags=["viewer-websocket"])


@router.websocket("/")
@router.websocket("/ws")
async def viewer_websocket_endpoint(websocket: WebSocket) -> None:
    """Register the viewer, push the snapshot, then serve refresh requests."""
    viewers: ViewerRegistry = websocket.app.state.viewers
    fanout: BroadcastFanout = websocket.app.state.fanout

    client = f"{websocket.client.host}:{websocket.client.port}" if websocket.client else ""
    channel = ViewerChannel(
        websocket,
        client=client,
        outbox_size=viewers.config.outbox_size,
    )

    try:
        viewers.register(channel)
    except ConnectionError as exc:
        logger.warning(f"Rejected viewer from {client or 'unknown'}: {exc}")
        await websocket.close(code=CLOSE_TRY_AGAIN_LATER, reason=str(exc))
        return

    with LogContext(connection_id=channel.connection_id):
        try:
            await websocket.accept()
            channel.open()
            logger.info("Viewer connected", extra={"client": client})
            fanout.send_snapshot(channel)

            async for raw in websocket.iter_text():
                for reply in handle_viewer_message(channel, raw, fanout):
                    channel.offer(json.dumps(reply))
        except Exception:
            logger.exception("Viewer socket failed")
        finally:
            channel.detach()
            viewers.unregister(channel.connection_id)
            logger.info("Viewer disconnected", extra={"client": client})


def handle_viewer_message(
    channel: ViewerChannel,
    raw_message: str,
    fanout: BroadcastFanout,
) -> list[dict]:
    """Handle one message from a viewer.

    Supports:
    - {"type": "get_signals"}  → snapshot to this viewer only
    - {"type": "ping"}         → pong

    Returns:
        Replies to send back to this viewer.
    """
    try:
        msg = json.loads(raw_message)
    except json.JSONDecodeError:
        logger.warning("Viewer sent invalid JSON")
        return [{"type": "error", "error": "Invalid JSON"}]

    if not isinstance(msg, dict):
        return [{"type": "error", "error": "Message must be a JSON object"}]

    msg_type = msg.get("type")

    if msg_type == ViewerMessageType.GET_SIGNALS.value:
        fanout.send_snapshot(channel)
        return []

    if msg_type == ViewerMessageType.PING.value:
        return [{"type": "pong", "timestamp": datetime.now(timezone.utc).isoformat()}]

    return [{
        "type": "error",
        "error": f"Unknown message type: {msg_type}",
        "available": sorted(t.value for t in ViewerMessageType),
    }]
