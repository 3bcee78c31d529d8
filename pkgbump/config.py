"""Runtime settings read from the environment via pydantic-settings.

There is no configuration file; every value can be overridden with a
PKGBUMP_* environment variable or a CLI option.
"""

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"


class Settings(BaseSettings):
    """Settings for registry access and logging."""

    model_config = SettingsConfigDict(
        env_prefix="PKGBUMP_",
        extra="ignore",
        populate_by_name=True,
    )

    registry_url: str = Field(
        default=DEFAULT_REGISTRY_URL,
        validation_alias=AliasChoices("PKGBUMP_REGISTRY_URL", "NPM_CONFIG_REGISTRY"),
    )
    timeout: float = Field(default=10.0, gt=0)
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay: float = Field(default=0.5, ge=0)
    max_concurrency: int = Field(default=6, ge=1)
    log_level: str = "WARNING"

    @field_validator("registry_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level


def get_settings(**overrides) -> Settings:
    """Build settings from the environment, applying non-None overrides."""
    return Settings(**{key: value for key, value in overrides.items() if value is not None})
