"""Structured Logging & Request Tracing.

Provides structured JSON logging, request and connection ID
propagation, and timing for sweeps and broadcasts.
"""

from signal_monitor.logging_config.config import LogFormat, LoggingConfig, LogLevel
from signal_monitor.logging_config.context import (
    LogContext,
    generate_request_id,
    get_connection_id,
    get_request_id,
)
from signal_monitor.logging_config.performance import PerformanceTimer
from signal_monitor.logging_config.setup import configure_logging, get_logger

__all__ = [
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "LogContext",
    "PerformanceTimer",
    "configure_logging",
    "generate_request_id",
    "get_connection_id",
    "get_logger",
    "get_request_id",
]
