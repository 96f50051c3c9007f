"""Settings loading."""

from __future__ import annotations

from chalsync.challenges.schemas import Behavior, DecayFunction
from chalsync.config import Settings, get_settings


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.ctfd_url == "http://localhost:8000"
        assert settings.default_function is DecayFunction.LOGARITHMIC
        assert settings.default_behavior is Behavior.HIDDEN
        assert settings.http_retries == 0
        assert settings.log_format == "console"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("CHALSYNC_CTFD_URL", "https://ctf.example.com")
        monkeypatch.setenv("CHALSYNC_CTFD_API_KEY", "ctfd_abc")
        monkeypatch.setenv("CHALSYNC_DEFAULT_FUNCTION", "linear")
        monkeypatch.setenv("CHALSYNC_HTTP_RETRIES", "3")

        settings = Settings()
        assert settings.ctfd_url == "https://ctf.example.com"
        assert settings.ctfd_api_key == "ctfd_abc"
        assert settings.default_function is DecayFunction.LINEAR
        assert settings.http_retries == 3

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
