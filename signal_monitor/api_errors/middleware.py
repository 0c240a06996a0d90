"""Error Handling Middleware.

ASGI middleware that catches exceptions escaping the route handlers
and returns structured error responses instead of raw tracebacks.
"""

import json
import logging
from typing import Any, Dict, Optional

from signal_monitor.api_errors.config import DEFAULT_ERROR_CONFIG, ErrorConfig
from signal_monitor.api_errors.exceptions import SignalMonitorError
from signal_monitor.api_errors.handlers import (
    ErrorResponse,
    handle_signal_monitor_error,
    handle_unhandled_error,
)

logger = logging.getLogger(__name__)


class ErrorHandlingMiddleware:
    """ASGI middleware that catches unhandled exceptions on HTTP requests.

    If the response has already started, the exception is logged and
    re-raised since no envelope can be sent any more.
    """

    def __init__(self, app: Any, config: Optional[ErrorConfig] = None):
        self.app = app
        self.config = config or DEFAULT_ERROR_CONFIG

    async def __call__(self, scope: Dict[str, Any], receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Dict[str, Any]) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except SignalMonitorError as exc:
            if response_started:
                raise
            await self._send_error(send, handle_signal_monitor_error(exc, self.config))
        except Exception as exc:
            if response_started:
                raise
            await self._send_error(send, handle_unhandled_error(exc, self.config))

    async def _send_error(self, send: Any, error_response: ErrorResponse) -> None:
        """Send a structured error response over ASGI."""
        body = json.dumps(error_response.to_dict()).encode("utf-8")
        await send({
            "type": "http.response.start",
            "status": error_response.status_code,
            "headers": [
                [b"content-type", b"application/json"],
                [b"content-length", str(len(body)).encode()],
            ],
        })
        await send({
            "type": "http.response.body",
            "body": body,
        })
