"""
Tests for settings.
"""

import pytest
from pydantic import ValidationError

from worldmon.settings import Settings, load_settings


class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.api_port == 3001
        assert settings.rate_limit_per_minute == 100
        assert settings.cors_origins == ("http://localhost:3000",)
        assert settings.webhook_url is None

    def test_load_from_environment(self, monkeypatch):
        monkeypatch.setenv("WORLDMONITOR_API_KEY", "prod-key")
        monkeypatch.setenv("WORLDMONITOR_PORT", "8080")
        monkeypatch.setenv("WORLDMONITOR_CORS_ORIGINS", "https://a.test, https://b.test")
        monkeypatch.setenv("CORRELATION_LOOKBACK_HOURS", "24")

        settings = load_settings()

        assert settings.api_key == "prod-key"
        assert settings.api_port == 8080
        assert settings.cors_origins == ("https://a.test", "https://b.test")
        assert settings.correlation_lookback_hours == 24

    def test_settings_are_frozen(self):
        with pytest.raises(ValidationError):
            Settings().api_key = "changed"

