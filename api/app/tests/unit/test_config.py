"""Unit tests for environment-driven settings."""

import dataclasses

import pytest

from app.core.config import Settings


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ("PORT", "ANTHROPIC_API_KEY", "ANTHROPIC_MODEL", "ANTHROPIC_MAX_TOKENS",
                     "UPSTREAM_TIMEOUT", "STRICT_RESULT_VALIDATION", "ANTHROPIC_BASE_URL"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.port == 3001
        assert settings.anthropic_api_key is None
        assert settings.max_tokens == 2048
        assert settings.upstream_timeout is None
        assert settings.strict_result_validation is False
        assert settings.messages_url == "https://api.anthropic.com/v1/messages"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-abc")
        monkeypatch.setenv("ANTHROPIC_BASE_URL", "http://localhost:9000/")
        monkeypatch.setenv("UPSTREAM_TIMEOUT", "12.5")
        monkeypatch.setenv("STRICT_RESULT_VALIDATION", "TRUE")

        settings = Settings()

        assert settings.port == 8080
        assert settings.anthropic_api_key == "sk-ant-abc"
        assert settings.messages_url == "http://localhost:9000/v1/messages"
        assert settings.upstream_timeout == 12.5
        assert settings.strict_result_validation is True

    def test_empty_api_key_is_unset(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "")

        assert Settings().anthropic_api_key is None

    def test_settings_are_immutable(self):
        settings = Settings(anthropic_api_key="k")

        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.anthropic_api_key = "other"

    @pytest.mark.parametrize("env,expected", [("prod", True), ("production", True), ("dev", False)])
    def test_is_production(self, env, expected):
        assert Settings(service_env=env).is_production is expected
