"""Tests for environment-driven settings and the CLI parser."""

from main import build_parser
from signal_monitor.settings import Settings, get_settings


class TestSettings:
    """Tests for Settings defaults and environment overrides."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PORT", raising=False)
        settings = Settings(_env_file=None)
        assert settings.port == 8080
        assert settings.signal_timeout_ms == 120_000
        assert settings.sweep_interval_ms == 5_000
        assert settings.outbox_size == 8
        assert settings.cors_origin_list == []

    def test_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("SIGNAL_MONITOR_SIGNAL_TIMEOUT_MS", "60000")
        monkeypatch.setenv("SIGNAL_MONITOR_SWEEP_INTERVAL_MS", "1000")
        settings = Settings(_env_file=None)
        assert settings.signal_timeout_ms == 60_000
        assert settings.sweep_interval_ms == 1_000

    def test_plain_port_env(self, monkeypatch):
        monkeypatch.delenv("SIGNAL_MONITOR_PORT", raising=False)
        monkeypatch.setenv("PORT", "9090")
        assert Settings(_env_file=None).port == 9090

    def test_prefixed_port_wins(self, monkeypatch):
        monkeypatch.setenv("SIGNAL_MONITOR_PORT", "7070")
        monkeypatch.setenv("PORT", "9090")
        assert Settings(_env_file=None).port == 7070

    def test_cors_origin_list(self):
        settings = Settings(cors_origins="http://a.test, http://b.test ,")
        assert settings.cors_origin_list == ["http://a.test", "http://b.test"]

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()


class TestCLI:
    """Tests for command-line parsing."""

    def test_defaults_are_unset(self):
        args = build_parser().parse_args([])
        assert args.port is None
        assert args.signal_timeout_ms is None

    def test_overrides(self):
        args = build_parser().parse_args(
            ["--port", "9000", "--signal-timeout-ms", "30000", "--log-level", "DEBUG"]
        )
        assert args.port == 9000
        assert args.signal_timeout_ms == 30_000
        assert args.log_level == "DEBUG"
