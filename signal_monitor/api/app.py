"""FastAPI Application Factory.

Creates the signal monitor app: the registry and its collaborators
are built once per app and stored on app.state; the expiry sweeper
runs for the lifespan of the app and every viewer is closed on
shutdown.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from signal_monitor.api.config import APIConfig, DEFAULT_API_CONFIG
from signal_monitor.api.models import HealthResponse
from signal_monitor.api.routes import ingest, signals, viewer_ws
from signal_monitor.api_errors.handlers import register_exception_handlers
from signal_monitor.api_errors.middleware import ErrorHandlingMiddleware
from signal_monitor.logging_config.config import LogFormat, LoggingConfig, LogLevel
from signal_monitor.logging_config.middleware import RequestTracingMiddleware
from signal_monitor.logging_config.setup import configure_logging
from signal_monitor.registry.config import RegistryConfig
from signal_monitor.registry.fanout import BroadcastFanout
from signal_monitor.registry.store import SignalRegistry
from signal_monitor.registry.sweeper import ExpirySweeper
from signal_monitor.settings import Settings, get_settings
from signal_monitor.viewers.config import ViewerConfig
from signal_monitor.viewers.registry import ViewerRegistry

logger = logging.getLogger(__name__)


# ── Security Headers Middleware ───────────────────────────────────────


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds standard security headers to all HTTP responses."""

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if os.environ.get("SIGNAL_MONITOR_ENABLE_HSTS", "").lower() == "true":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response


# ── Lifespan (startup / shutdown) ────────────────────────────────────


def _logging_config(settings: Settings) -> LoggingConfig:
    level = settings.log_level.upper()
    fmt = settings.log_format.lower()
    return LoggingConfig(
        level=LogLevel(level) if level in LogLevel.__members__ else LogLevel.INFO,
        format=LogFormat(fmt) if fmt in [f.value for f in LogFormat] else LogFormat.JSON,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the expiry sweeper; on shutdown stop it and close every viewer."""
    settings: Settings = app.state.settings
    configure_logging(_logging_config(settings))

    await app.state.sweeper.start()
    logger.info(
        f"Signal monitor listening on {settings.host}:{settings.port} "
        f"(signal timeout {settings.signal_timeout_ms / 1000:.0f}s, "
        f"sweep every {settings.sweep_interval_ms / 1000:.0f}s, in-memory storage)"
    )
    yield
    logger.info("Signal monitor shutting down")
    await app.state.sweeper.stop()
    closed = await app.state.viewers.close_all()
    logger.info(f"Signal monitor stopped ({closed} viewer(s) closed)")


# ── App Factory ──────────────────────────────────────────────────────


def create_app(
    settings: Optional[Settings] = None,
    config: Optional[APIConfig] = None,
    clock: Optional[Callable[[], float]] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Middleware stack (outermost → innermost):
        SecurityHeaders → RequestTracing → ErrorHandling → CORS → App

    Args:
        settings: Runtime settings. Loaded from the environment if not provided.
        config: API configuration. Uses defaults if not provided.
        clock: Epoch-millisecond clock for the registry (tests inject a fake).

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_settings()
    config = config or DEFAULT_API_CONFIG

    app = FastAPI(
        title=config.title,
        version=config.version,
        description=config.description,
        docs_url=config.docs_url,
        lifespan=lifespan,
    )

    # ── Core components ──────────────────────────────────────────
    registry = SignalRegistry(clock=clock)
    viewers = ViewerRegistry(ViewerConfig(outbox_size=settings.outbox_size))
    fanout = BroadcastFanout(registry, viewers)
    sweeper = ExpirySweeper(
        registry,
        fanout,
        RegistryConfig(
            signal_timeout_ms=settings.signal_timeout_ms,
            sweep_interval_ms=settings.sweep_interval_ms,
        ),
    )

    app.state.settings = settings
    app.state.registry = registry
    app.state.viewers = viewers
    app.state.fanout = fanout
    app.state.sweeper = sweeper

    # ── Middleware stack ──────────────────────────────────────────
    # add_middleware prepends, so order here is innermost-first.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or config.cors_origins,
        allow_methods=config.cors_methods,
        allow_headers=config.cors_headers,
    )
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestTracingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    register_exception_handlers(app)

    # ── Health check ─────────────────────────────────────────────

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        sweeper_stats = sweeper.get_stats()
        return HealthResponse(
            status="ok" if sweeper_stats["running"] else "degraded",
            version=config.version,
            signals=registry.count(),
            viewers=viewers.get_stats(),
            sweeper=sweeper_stats,
        )

    # ── Route modules ────────────────────────────────────────────

    app.include_router(signals.router, prefix=config.prefix)
    # Producer POST and viewer socket share the root path
    app.include_router(ingest.router)
    app.include_router(viewer_ws.router)

    # Dashboard assets (last, so API routes take precedence)
    if settings.static_dir:
        static_path = Path(settings.static_dir)
        if static_path.is_dir():
            app.mount("/", StaticFiles(directory=static_path, html=True), name="dashboard")
        else:
            logger.warning(f"Static directory not found, dashboard disabled: {static_path}")

    logger.info(f"{config.title} v{config.version} initialized")
    return app
