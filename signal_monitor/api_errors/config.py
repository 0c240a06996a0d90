"""API Error Configuration.

Defines error codes, severity levels, and configuration for
structured error handling.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class ErrorCode(Enum):
    """Standardized error codes for API responses."""

    # Malformed input (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_JSON = "INVALID_JSON"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    UNKNOWN_EVENT_TYPE = "UNKNOWN_EVENT_TYPE"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorSeverity(Enum):
    """Severity levels for error logging."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


ERROR_STATUS_MAP: Dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INVALID_JSON: 400,
    ErrorCode.MISSING_REQUIRED_FIELD: 400,
    ErrorCode.UNKNOWN_EVENT_TYPE: 400,
    ErrorCode.INTERNAL_ERROR: 500,
}

ERROR_SEVERITY_MAP: Dict[ErrorCode, ErrorSeverity] = {
    ErrorCode.VALIDATION_ERROR: ErrorSeverity.LOW,
    ErrorCode.INVALID_JSON: ErrorSeverity.LOW,
    ErrorCode.MISSING_REQUIRED_FIELD: ErrorSeverity.LOW,
    ErrorCode.UNKNOWN_EVENT_TYPE: ErrorSeverity.MEDIUM,
    ErrorCode.INTERNAL_ERROR: ErrorSeverity.CRITICAL,
}


@dataclass
class ErrorConfig:
    """Configuration for API error handling."""

    include_request_id: bool = True
    log_all_errors: bool = True
    suppress_internal_details: bool = True


DEFAULT_ERROR_CONFIG = ErrorConfig()
