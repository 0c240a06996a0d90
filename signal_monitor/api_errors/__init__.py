"""API Error Handling.

Structured error responses, exception handlers, and the ASGI
error middleware for the producer-facing HTTP surface.
"""

from signal_monitor.api_errors.config import (
    ErrorCode,
    ErrorConfig,
    ErrorSeverity,
)
from signal_monitor.api_errors.exceptions import (
    MalformedPayloadError,
    SignalMonitorError,
    UnknownEventError,
    ValidationError,
)
from signal_monitor.api_errors.handlers import (
    ErrorResponse,
    create_error_response,
    register_exception_handlers,
)
from signal_monitor.api_errors.middleware import ErrorHandlingMiddleware

__all__ = [
    # Config
    "ErrorCode",
    "ErrorConfig",
    "ErrorSeverity",
    # Exceptions
    "MalformedPayloadError",
    "SignalMonitorError",
    "UnknownEventError",
    "ValidationError",
    # Handlers
    "ErrorResponse",
    "create_error_response",
    "register_exception_handlers",
    # Middleware
    "ErrorHandlingMiddleware",
]
