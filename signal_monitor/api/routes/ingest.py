"""Producer Ingestion Routes.

Producers POST signal and remove_signal events. Events are validated
here, at the boundary; anything malformed is rejected before it can
reach the registry.
"""

import json
import logging
from typing import Union

from fastapi import APIRouter, Request
from pydantic import ValidationError as PydanticValidationError

from signal_monitor.api.models import (
    EventType,
    IngestResponse,
    RemoveSignalEvent,
    SignalEvent,
)
from signal_monitor.api_errors.config import ErrorCode
from signal_monitor.api_errors.exceptions import (
    MalformedPayloadError,
    UnknownEventError,
    ValidationError,
)
from signal_monitor.registry.models import make_key

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Ingestion"])

ProducerEvent = Union[SignalEvent, RemoveSignalEvent]

EVENT_MODELS = {
    EventType.SIGNAL.value: SignalEvent,
    EventType.REMOVE_SIGNAL.value: RemoveSignalEvent,
}


def parse_event(raw: bytes) -> ProducerEvent:
    """Parse and validate a raw producer payload.

    Raises:
        MalformedPayloadError: Body is not a JSON object.
        UnknownEventError: The "type" field names no known event.
        ValidationError: Required fields are missing or invalid.
    """
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        raise MalformedPayloadError()

    if not isinstance(data, dict):
        raise MalformedPayloadError("Event payload must be a JSON object")

    event_type = data.get("type")
    model = EVENT_MODELS.get(event_type) if isinstance(event_type, str) else None
    if model is None:
        raise UnknownEventError(event_type, allowed=list(EVENT_MODELS))

    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        errors = exc.errors()
        details = [
            {"field": ".".join(str(p) for p in err["loc"]), "issue": err["msg"]}
            for err in errors
        ]
        missing = any(err["type"] == "missing" for err in errors)
        raise ValidationError(
            message="Invalid event payload",
            error_code=ErrorCode.MISSING_REQUIRED_FIELD if missing else ErrorCode.VALIDATION_ERROR,
            details=details,
        )


@router.post("/", response_model=IngestResponse, response_model_exclude_none=True)
@router.post("/api/v1/events", response_model=IngestResponse, response_model_exclude_none=True)
async def ingest_event(request: Request) -> IngestResponse:
    """Apply a producer event to the registry and push the new snapshot."""
    event = parse_event(await request.body())
    registry = request.app.state.registry
    fanout = request.app.state.fanout
    key = make_key(event.symbol, event.timeframe)

    logger.info(f"Received {event.type} event", extra={"signal_key": key})

    if isinstance(event, SignalEvent):
        created = registry.upsert(
            symbol=event.symbol,
            timeframe=event.timeframe,
            trade_type=event.trade_type,
            h4_trend=event.h4_trend,
            d1_trend=event.d1_trend,
            min_lot=event.min_lot,
            min_margin=event.min_margin,
        )
        fanout.broadcast_snapshot()
        return IngestResponse(message="Signal received", created=created)

    removed = registry.remove(event.symbol, event.timeframe)
    if removed:
        fanout.broadcast_snapshot()
    return IngestResponse(message="Signal removed", removed=removed)
