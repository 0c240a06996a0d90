"""Custom Exception Hierarchy.

Typed exceptions raised at the ingestion boundary. Each maps to an
error code and HTTP status; none of them ever reaches the registry.
"""

from typing import Any, Dict, List, Optional

from signal_monitor.api_errors.config import ERROR_STATUS_MAP, ErrorCode


class SignalMonitorError(Exception):
    """Base exception for all client-visible signal monitor errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = ERROR_STATUS_MAP.get(error_code, 500)
        self.details = details or []


class ValidationError(SignalMonitorError):
    """Raised when an event payload fails field validation."""

    def __init__(
        self,
        message: str = "Validation failed",
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(message, error_code, details)


class MalformedPayloadError(SignalMonitorError):
    """Raised when a request body is not a parsable JSON object."""

    def __init__(self, message: str = "Invalid JSON"):
        super().__init__(message, ErrorCode.INVALID_JSON)


class UnknownEventError(SignalMonitorError):
    """Raised when an event carries a type the endpoint does not handle."""

    def __init__(self, event_type: Any, allowed: Optional[List[str]] = None):
        details = [{"field": "type", "value": str(event_type)}]
        if allowed:
            details[0]["allowed"] = sorted(allowed)
        super().__init__("Unknown request type", ErrorCode.UNKNOWN_EVENT_TYPE, details)
        self.event_type = event_type
