"""CLI entry point: python main.py --port 8080"""

import argparse

import uvicorn

from signal_monitor import __version__
from signal_monitor.api import create_app
from signal_monitor.settings import get_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Signal Monitor - live trading-signal registry with WebSocket fanout"
    )
    parser.add_argument(
        "--host", type=str, default=None,
        help="Interface to bind (default: SIGNAL_MONITOR_HOST or 0.0.0.0)"
    )
    parser.add_argument(
        "--port", type=int, default=None,
        help="Port to listen on (default: PORT or 8080)"
    )
    parser.add_argument(
        "--signal-timeout-ms", type=int, default=None,
        help="Expire signals not refreshed within this many ms (default: 120000)"
    )
    parser.add_argument(
        "--sweep-interval-ms", type=int, default=None,
        help="How often the expiry sweep runs, in ms (default: 5000)"
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: INFO)"
    )
    parser.add_argument(
        "--static-dir", type=str, default=None,
        help="Directory with dashboard files to serve at /"
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    overrides = {
        name: value
        for name, value in (
            ("host", args.host),
            ("port", args.port),
            ("signal_timeout_ms", args.signal_timeout_ms),
            ("sweep_interval_ms", args.sweep_interval_ms),
            ("log_level", args.log_level),
            ("static_dir", args.static_dir),
        )
        if value is not None
    }
    settings = get_settings().model_copy(update=overrides)

    print("=" * 60)
    print(f"SIGNAL MONITOR v{__version__}")
    print(f"Listening on {settings.host}:{settings.port}")
    print(f"Signal timeout: {settings.signal_timeout_ms / 1000:.0f}s")
    print(f"Sweep interval: {settings.sweep_interval_ms / 1000:.0f}s")
    print("Storage: in-memory")
    print("=" * 60)

    app = create_app(settings)
    # Logging is configured by the app lifespan
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
