"""Logging Context.

Request- and connection-scoped context using contextvars, so that
every log line emitted while handling a producer request or a viewer
socket carries the identifiers of that request or socket.
"""

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any


_request_id_var: ContextVar[str] = ContextVar("request_id", default="")
_correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
_connection_id_var: ContextVar[str] = ContextVar("connection_id", default="")
_extra_context_var: ContextVar[dict] = ContextVar("extra_context", default={})


def generate_request_id() -> str:
    """Generate a unique request ID using UUID4."""
    return str(uuid.uuid4())


def get_request_id() -> str:
    """Get the current request ID from context."""
    return _request_id_var.get()


def get_connection_id() -> str:
    """Get the current viewer connection ID from context."""
    return _connection_id_var.get()


def get_context_dict() -> dict[str, Any]:
    """Get all context variables as a dictionary for log binding."""
    ctx = {}
    req_id = _request_id_var.get()
    if req_id:
        ctx["request_id"] = req_id
    corr_id = _correlation_id_var.get()
    if corr_id:
        ctx["correlation_id"] = corr_id
    conn_id = _connection_id_var.get()
    if conn_id:
        ctx["connection_id"] = conn_id
    extra = _extra_context_var.get()
    if extra:
        ctx.update(extra)
    return ctx


@dataclass
class LogContext:
    """Context manager binding identifiers to all log entries inside it.

    Used around producer requests (request_id, correlation_id) and
    around the lifetime of a viewer socket (connection_id). Restores
    the previous values on exit, so contexts nest.

    Example:
        with LogContext(connection_id="a1b2c3"):
            logger.info("viewer connected")  # includes connection_id
    """

    request_id: str = ""
    correlation_id: str = ""
    connection_id: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    _tokens: list = field(default_factory=list, repr=False)

    def __enter__(self) -> "LogContext":
        self._tokens = [
            (_request_id_var, _request_id_var.set(self.request_id)),
            (_correlation_id_var, _correlation_id_var.set(self.correlation_id or self.request_id)),
            (_connection_id_var, _connection_id_var.set(self.connection_id)),
            (_extra_context_var, _extra_context_var.set(self.extra.copy())),
        ]
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()

    def bind(self, **kwargs: Any) -> None:
        """Add extra key-value pairs to the context."""
        current = _extra_context_var.get()
        _extra_context_var.set({**current, **kwargs})
        self.extra.update(kwargs)
