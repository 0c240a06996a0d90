"""Logging Setup.

One-call configuration for structured logging across the signal monitor.
Supports JSON output for production and colored console for development.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

from signal_monitor.logging_config.config import DEFAULT_LOGGING_CONFIG, LogFormat, LoggingConfig, LogLevel
from signal_monitor.logging_config.context import get_context_dict

# Attributes callers may attach through ``extra=`` that end up in the JSON line
EXTRA_FIELDS = (
    "duration_ms",
    "status_code",
    "method",
    "path",
    "signal_key",
    "removed_keys",
    "signal_count",
    "viewer_count",
    "client",
)


class StructuredFormatter(logging.Formatter):
    """JSON structured log formatter.

    Produces one JSON object per log line with consistent fields:
    timestamp, level, logger, message, plus any bound context.
    """

    def __init__(self, service_name: str = "signal-monitor", include_caller: bool = True):
        super().__init__()
        self.service_name = service_name
        self.include_caller = include_caller

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        if self.include_caller:
            log_entry["function"] = record.funcName
            log_entry["line"] = record.lineno

        ctx = get_context_dict()
        if ctx:
            log_entry.update(ctx)

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored console formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%H:%M:%S.%f")[:-3]

        ctx = get_context_dict()
        ctx_str = ""
        if ctx:
            ctx_str = " [" + ", ".join(f"{k}={v}" for k, v in ctx.items()) + "]"

        line = (
            f"{color}{timestamp} {record.levelname:8s}{self.RESET} "
            f"{record.name}: {record.getMessage()}{ctx_str}"
        )

        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)

        return line


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Configure structured logging for the signal monitor.

    Call once at application startup. Level and format can be overridden
    with the SIGNAL_MONITOR_LOG_LEVEL and SIGNAL_MONITOR_LOG_FORMAT
    environment variables.
    """
    config = config or DEFAULT_LOGGING_CONFIG

    env_level = os.environ.get("SIGNAL_MONITOR_LOG_LEVEL", "").upper()
    level = LogLevel(env_level) if env_level in LogLevel.__members__ else config.level

    env_format = os.environ.get("SIGNAL_MONITOR_LOG_FORMAT", "").lower()
    fmt = LogFormat(env_format) if env_format in [f.value for f in LogFormat] else config.format

    if fmt == LogFormat.JSON:
        formatter = StructuredFormatter(
            service_name=config.service_name,
            include_caller=config.include_caller,
        )
    else:
        formatter = ConsoleFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.value))

    for noisy in config.quiet_loggers:
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a standard library logger routed through the configured formatter."""
    return logging.getLogger(name)
