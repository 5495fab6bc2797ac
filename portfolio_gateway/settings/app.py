"""Application settings powered by Pydantic BaseSettings.

The environment is parsed and validated once; components receive the
resulting immutable settings (or values derived from them) explicitly.
"""

from functools import lru_cache
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from portfolio_gateway.http.constants import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_TIMEOUT_MS,
    MAX_BACKOFF_FACTOR,
    MAX_RETRY_DELAY_MS,
    MAX_TIMEOUT_MS,
)
from portfolio_gateway.http.models import ClientSettings


SUPPORTED_ENVS = ("development", "test", "production")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app_env: str = Field(default="development", validation_alias="APP_ENV")

    http_timeout_ms: Annotated[int, Field(gt=0, le=MAX_TIMEOUT_MS)] = Field(
        default=DEFAULT_TIMEOUT_MS, validation_alias="HTTP_TIMEOUT_MS"
    )
    http_max_retries: Annotated[int, Field(ge=0, le=5)] = Field(
        default=DEFAULT_MAX_RETRIES, validation_alias="HTTP_MAX_RETRIES"
    )
    http_retry_delay_ms: Annotated[int, Field(ge=0, le=MAX_RETRY_DELAY_MS)] = Field(
        default=DEFAULT_RETRY_DELAY_MS, validation_alias="HTTP_RETRY_DELAY_MS"
    )
    http_retry_backoff_factor: Annotated[
        float, Field(gt=0, le=MAX_BACKOFF_FACTOR)
    ] = Field(
        default=DEFAULT_BACKOFF_FACTOR, validation_alias="HTTP_RETRY_BACKOFF_FACTOR"
    )
    http_log_retries: bool = Field(default=False, validation_alias="HTTP_LOG_RETRIES")

    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1", validation_alias="OPENAI_BASE_URL"
    )
    openai_model: str = Field(default="gpt-3.5-turbo", validation_alias="OPENAI_MODEL")
    recaptcha_secret_key: str | None = Field(
        default=None, validation_alias="RECAPTCHA_SECRET_KEY"
    )
    recaptcha_verify_url: str = Field(
        default="https://www.google.com/recaptcha/api/siteverify",
        validation_alias="RECAPTCHA_VERIFY_URL",
    )
    fsa_base_url: str = Field(
        default="https://api.ratings.food.gov.uk", validation_alias="FSA_BASE_URL"
    )
    google_maps_api_key: str | None = Field(
        default=None, validation_alias="GOOGLE_MAPS_API_KEY"
    )
    google_places_base_url: str = Field(
        default="https://maps.googleapis.com/maps/api/place",
        validation_alias="GOOGLE_PLACES_BASE_URL",
    )
    raindrop_base_url: str = Field(
        default="https://api.raindrop.io", validation_alias="RAINDROP_BASE_URL"
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("app_env", mode="before")
    @classmethod
    def normalize_env(cls, v: Any) -> str:
        """Lower-case the environment, falling back to development."""
        env = str(v or "").strip().lower()
        return env if env in SUPPORTED_ENVS else "development"

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        """Upper-case the level name and reject unknown levels."""
        level = str(v or "").strip().upper()
        if level not in LOG_LEVELS:
            msg = f"must be one of {', '.join(LOG_LEVELS)}, got '{v}'"
            raise ValueError(msg)
        return level

    @field_validator(
        "openai_base_url",
        "recaptcha_verify_url",
        "fsa_base_url",
        "google_places_base_url",
        "raindrop_base_url",
    )
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensure integration URLs are absolute http(s) URLs."""
        if not v.startswith(("http://", "https://")):
            msg = f"must be a valid http(s) url, got '{v}'"
            raise ValueError(msg)
        return v

    @property
    def is_production(self) -> bool:
        """Whether the process runs in production."""
        return self.app_env == "production"

    def http_client_settings(
        self,
        dependency_name: str,
        base_url: str | None = None,
        **overrides: Any,
    ) -> ClientSettings:
        """Build client settings for one dependency from the HTTP defaults.

        Args:
            dependency_name: Label used to tag the client's logs.
            base_url: Base URL for relative request paths.
            **overrides: Any other ``ClientSettings`` field.

        Returns:
            Immutable client settings.
        """
        values: dict[str, Any] = {
            "base_url": base_url,
            "dependency_name": dependency_name,
            "timeout_ms": self.http_timeout_ms,
            "max_retries": self.http_max_retries,
            "retry_delay_ms": self.http_retry_delay_ms,
            "backoff_factor": self.http_retry_backoff_factor,
            "log_retries": self.http_log_retries,
        }
        values.update(overrides)
        return ClientSettings(**values)


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Get the process-wide settings, parsed on first access."""
    return AppSettings()


def reset_settings_cache() -> None:
    """Forget the memoized settings (primarily for testing)."""
    get_settings.cache_clear()
