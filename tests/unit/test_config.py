"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from pkgbump.config import DEFAULT_REGISTRY_URL, Settings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "PKGBUMP_REGISTRY_URL",
        "NPM_CONFIG_REGISTRY",
        "PKGBUMP_TIMEOUT",
        "PKGBUMP_MAX_RETRIES",
        "PKGBUMP_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """Test settings defaults and overrides."""

    def test_defaults(self):
        """Should default to the public npm registry."""
        settings = Settings()
        assert settings.registry_url == DEFAULT_REGISTRY_URL
        assert settings.timeout == 10.0
        assert settings.max_retries == 3
        assert settings.max_concurrency == 6
        assert settings.log_level == "WARNING"

    def test_environment_override(self, monkeypatch):
        """Should read PKGBUMP_* variables."""
        monkeypatch.setenv("PKGBUMP_REGISTRY_URL", "https://npm.internal/")
        monkeypatch.setenv("PKGBUMP_TIMEOUT", "2.5")
        monkeypatch.setenv("PKGBUMP_LOG_LEVEL", "debug")

        settings = Settings()

        assert settings.registry_url == "https://npm.internal"
        assert settings.timeout == 2.5
        assert settings.log_level == "DEBUG"

    def test_npm_config_registry(self, monkeypatch):
        """Should honour the registry variable npm itself uses."""
        monkeypatch.setenv("NPM_CONFIG_REGISTRY", "https://mirror.example.com")
        assert Settings().registry_url == "https://mirror.example.com"

    def test_invalid_values(self):
        """Should reject nonsensical values."""
        with pytest.raises(ValidationError):
            Settings(max_concurrency=0)
        with pytest.raises(ValidationError):
            Settings(log_level="chatty")

    def test_get_settings_ignores_none(self):
        """Should only apply overrides that were given."""
        settings = get_settings(timeout=None, max_retries=1)
        assert settings.timeout == 10.0
        assert settings.max_retries == 1
