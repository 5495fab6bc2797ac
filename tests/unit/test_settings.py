"""Unit tests for application settings."""

from collections.abc import Iterator

import pytest
from pydantic import ValidationError

from portfolio_gateway.http.constants import (
    MAX_BACKOFF_FACTOR,
    MAX_RETRY_DELAY_MS,
    MAX_TIMEOUT_MS,
)
from portfolio_gateway.settings import AppSettings, get_settings, reset_settings_cache


ENV_VARS = (
    "APP_ENV",
    "HTTP_TIMEOUT_MS",
    "HTTP_MAX_RETRIES",
    "HTTP_RETRY_DELAY_MS",
    "HTTP_RETRY_BACKOFF_FACTOR",
    "HTTP_LOG_RETRIES",
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "OPENAI_MODEL",
    "RECAPTCHA_SECRET_KEY",
    "RECAPTCHA_VERIFY_URL",
    "FSA_BASE_URL",
    "GOOGLE_MAPS_API_KEY",
    "GOOGLE_PLACES_BASE_URL",
    "RAINDROP_BASE_URL",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Start every test from an empty environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


class TestAppSettings:
    """Tests for AppSettings."""

    def test_defaults(self) -> None:
        """Test defaults when nothing is configured."""
        settings = AppSettings(_env_file=None)

        assert settings.app_env == "development"
        assert settings.http_timeout_ms == 10_000
        assert settings.http_max_retries == 2
        assert settings.http_retry_delay_ms == 100
        assert settings.http_retry_backoff_factor == 2.0
        assert settings.http_log_retries is False
        assert settings.openai_api_key is None
        assert settings.openai_model == "gpt-3.5-turbo"
        assert settings.fsa_base_url == "https://api.ratings.food.gov.uk"
        assert settings.google_maps_api_key is None
        assert settings.google_places_base_url == (
            "https://maps.googleapis.com/maps/api/place"
        )
        assert settings.raindrop_base_url == "https://api.raindrop.io"
        assert settings.log_level == "INFO"
        assert settings.is_production is False

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test values are parsed from environment variables."""
        monkeypatch.setenv("APP_ENV", "Production")
        monkeypatch.setenv("HTTP_TIMEOUT_MS", "2500")
        monkeypatch.setenv("HTTP_MAX_RETRIES", "4")
        monkeypatch.setenv("HTTP_LOG_RETRIES", "true")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        settings = AppSettings(_env_file=None)

        assert settings.app_env == "production"
        assert settings.is_production is True
        assert settings.http_timeout_ms == 2500
        assert settings.http_max_retries == 4
        assert settings.http_log_retries is True
        assert settings.openai_api_key == "sk-test"

    def test_unknown_env_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test an unknown environment name becomes development."""
        monkeypatch.setenv("APP_ENV", "staging")

        assert AppSettings(_env_file=None).app_env == "development"

    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("HTTP_MAX_RETRIES", "6"),
            ("HTTP_MAX_RETRIES", "-1"),
            ("HTTP_TIMEOUT_MS", "0"),
            ("HTTP_RETRY_BACKOFF_FACTOR", "0"),
            ("HTTP_TIMEOUT_MS", "700000"),
            ("HTTP_RETRY_DELAY_MS", "60001"),
            ("HTTP_RETRY_BACKOFF_FACTOR", "11"),
            ("RAINDROP_BASE_URL", "api.raindrop.io"),
            ("LOG_LEVEL", "verbose"),
            ("FSA_BASE_URL", "ftp://ratings.example"),
        ],
    )
    def test_invalid_values_rejected(
        self, monkeypatch: pytest.MonkeyPatch, name: str, value: str
    ) -> None:
        """Test invalid configuration fails at load time."""
        monkeypatch.setenv(name, value)

        with pytest.raises(ValidationError):
            AppSettings(_env_file=None)

    def test_log_level_normalized(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test log level names are case-insensitive."""
        monkeypatch.setenv("LOG_LEVEL", "debug")

        assert AppSettings(_env_file=None).log_level == "DEBUG"

    def test_frozen(self) -> None:
        """Test settings are immutable."""
        settings = AppSettings(_env_file=None)

        with pytest.raises(ValidationError):
            settings.http_max_retries = 3  # type: ignore[misc]


class TestHttpClientSettings:
    """Tests for deriving per-dependency client settings."""

    def test_uses_http_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test client settings inherit the process HTTP defaults."""
        monkeypatch.setenv("HTTP_RETRY_DELAY_MS", "50")
        monkeypatch.setenv("HTTP_RETRY_BACKOFF_FACTOR", "3")
        settings = AppSettings(_env_file=None)

        client_settings = settings.http_client_settings(
            "fsa", base_url="https://api.ratings.food.gov.uk"
        )

        assert client_settings.dependency_name == "fsa"
        assert client_settings.base_url == "https://api.ratings.food.gov.uk"
        assert client_settings.retry_delay_ms == 50
        assert client_settings.backoff_factor == 3.0
        assert client_settings.max_retries == 2

    def test_overrides_win(self) -> None:
        """Test explicit overrides replace the defaults."""
        settings = AppSettings(_env_file=None)

        client_settings = settings.http_client_settings(
            "openai", max_retries=0, default_headers={"accept": "application/json"}
        )

        assert client_settings.max_retries == 0
        assert client_settings.default_headers == {"accept": "application/json"}


    def test_upper_bounds_accepted_by_client_settings(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test any loadable HTTP default also builds client settings."""
        monkeypatch.setenv("HTTP_TIMEOUT_MS", str(MAX_TIMEOUT_MS))
        monkeypatch.setenv("HTTP_RETRY_DELAY_MS", str(MAX_RETRY_DELAY_MS))
        monkeypatch.setenv("HTTP_RETRY_BACKOFF_FACTOR", str(MAX_BACKOFF_FACTOR))
        settings = AppSettings(_env_file=None)

        client_settings = settings.http_client_settings("fsa")

        assert client_settings.timeout_ms == MAX_TIMEOUT_MS
        assert client_settings.retry_delay_ms == MAX_RETRY_DELAY_MS
        assert client_settings.backoff_factor == MAX_BACKOFF_FACTOR


class TestGetSettings:
    """Tests for the memoized settings accessor."""

    def test_cached_until_reset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test settings are parsed once and re-read after a reset."""
        monkeypatch.setenv("HTTP_MAX_RETRIES", "1")
        first = get_settings()
        monkeypatch.setenv("HTTP_MAX_RETRIES", "3")

        assert get_settings() is first
        assert get_settings().http_max_retries == 1

        reset_settings_cache()
        assert get_settings().http_max_retries == 3
