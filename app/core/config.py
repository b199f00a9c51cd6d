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
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment."""

    return AppSettings()


def _build_smtp_settings() -> "SmtpSettings":
    return SmtpSettings()


def _build_record_store_settings() -> "RecordStoreSettings":
    return RecordStoreSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    download_url: str = Field(
        "/reports/fliptech-ai-implementation-report.html",
        description="URL returned to clients once the report download is granted",
    )
    max_email_chars: int = Field(
        200,
        description="Maximum accepted length of the submitted email address",
        ge=3,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting of report downloads",
    )
    rate_limit_requests: int = Field(
        3,
        description="Maximum number of downloads allowed per window (per client)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        15 * 60,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_store_path: str = Field(
        "data/report-download-limits.json",
        description="JSON file holding per-client rate limit counters",
    )
    rate_limit_fail_open: bool = Field(
        True,
        description="Allow requests when the rate limit store cannot be read",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class SmtpSettings(BaseSettings):
    """Outgoing mail configuration for confirmation emails."""

    host: str = Field(
        "smtp.gmail.com",
        description="SMTP server hostname",
    )
    port: int = Field(
        587,
        description="SMTP server port",
    )
    secure: bool = Field(
        False,
        description="Use implicit TLS (port 465 style); STARTTLS is used otherwise",
    )
    user: str | None = Field(
        None,
        description="SMTP username",
    )
    password: str | None = Field(
        None,
        description="SMTP password",
    )
    from_address: str | None = Field(
        None,
        alias="SMTP_FROM",
        description="Sender address; falls back to the SMTP username",
    )
    timeout_seconds: float = Field(
        30.0,
        description="SMTP connection and command timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="SMTP_",
        case_sensitive=False,
        populate_by_name=True,
    )


class RecordStoreSettings(BaseSettings):
    """Supabase REST configuration for download records.

    Persistence is skipped entirely when ``SUPABASE_URL`` is unset.
    """

    url: str | None = Field(
        None,
        description="Supabase project URL (e.g., https://xyz.supabase.co)",
    )
    service_key: str | None = Field(
        None,
        description="Supabase service role key used for inserts",
    )
    table: str = Field(
        "report_downloads",
        description="Table receiving one row per granted download",
    )
    timeout_seconds: float = Field(
        10.0,
        description="HTTP timeout for record inserts in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field(
        "INFO",
        description="Root log level",
    )
    format: str = Field(
        "json",
        description="Log format: json or plain",
    )
    output: str = Field(
        "stdout",
        description="Log destination: stdout or file",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output is 'file'",
    )
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file at this size (0 disables rotation)",
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
    )
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to accept and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if required settings are missing.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    smtp: SmtpSettings = Field(default_factory=_build_smtp_settings)
    record_store: RecordStoreSettings = Field(default_factory=_build_record_store_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
