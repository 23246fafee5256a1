"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file and os.getenv("TESTING") != "true":
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class TranslateSettings(BaseSettings):
    """Machine translation provider configuration.

    The API key is optional at startup: a missing key is reported per request
    as an AUTH_ERROR so the analysis endpoint keeps working without it.
    """

    provider: str = Field(
        "google",
        description="Translation provider name (currently: google)",
    )
    api_key: str | None = Field(
        None,
        description="API key for the Google Cloud Translation v2 REST API",
    )
    base_url: str = Field(
        "https://translation.googleapis.com/language/translate/v2",
        description="Translation endpoint URL",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="TRANSLATE_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    max_text_chars: int = Field(
        5000,
        description="Maximum input text length in characters",
        ge=1,
    )

    translate_cache_ttl_seconds: int = Field(
        3600,
        description="Staleness bound for cached translations",
        ge=1,
    )
    translate_cache_max_entries: int = Field(
        500,
        description="Size that triggers batch eviction of the translation cache",
        ge=2,
    )
    analyze_cache_ttl_seconds: int = Field(
        3600,
        description="Staleness bound for cached analyses",
        ge=1,
    )
    analyze_cache_max_entries: int = Field(
        200,
        description="Size that triggers batch eviction of the analysis cache",
        ge=2,
    )
    cache_cleanup_interval_seconds: int = Field(
        300,
        description="Minimum time between TTL sweeps of a cache",
        ge=0,
    )
    response_cache_max_age: int = Field(
        3600,
        description="max-age advertised in Cache-Control for successful responses",
        ge=0,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable multi-tier admission control",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers",
    )
    rate_limit_window_seconds: int = Field(
        60,
        description="Window size shared by the per-client and global tiers",
        ge=1,
    )
    rate_limit_daily_window_seconds: int = Field(
        86400,
        description="Window size of the daily quota tier",
        ge=1,
    )
    translate_client_limit: int = Field(
        20,
        description="Translations per window for a single client",
        ge=1,
    )
    translate_global_limit: int = Field(
        200,
        description="Translations per window across all clients",
        ge=1,
    )
    translate_daily_limit: int = Field(
        5000,
        description="Translations per day across all clients",
        ge=1,
    )
    analyze_client_limit: int = Field(
        30,
        description="Analyses per window for a single client",
        ge=1,
    )
    analyze_global_limit: int = Field(
        300,
        description="Analyses per window across all clients",
        ge=1,
    )
    analyze_daily_limit: int = Field(
        10000,
        description="Analyses per day across all clients",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class ClientSettings(BaseSettings):
    """Configuration of the client-side translator."""

    base_url: str = Field(
        "http://localhost:8000",
        description="Base URL of the Kotoba API server",
    )
    timeout_seconds: float = Field(
        15.0,
        description="Request timeout in seconds",
    )
    cache_ttl_seconds: int = Field(
        1800,
        description="Staleness bound for client-side cached translations",
        ge=1,
    )
    cache_max_entries: int = Field(
        100,
        description="Size that triggers batch eviction of the client cache",
        ge=2,
    )

    model_config = SettingsConfigDict(
        env_prefix="CLIENT_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Number of rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header carrying the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are invalid.
    """

    app_env: str = APP_ENV
    translate: TranslateSettings = Field(default_factory=TranslateSettings)
    app: AppSettings = Field(default_factory=AppSettings)
    client: ClientSettings = Field(default_factory=ClientSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
