"""Client configuration using Pydantic Settings.

Configuration is environment-aware:
- DISCORD_REST_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DISCORD_REST_ENV = os.getenv("DISCORD_REST_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(DISCORD_REST_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first.
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_discord_settings() -> "DiscordSettings":
    return DiscordSettings()  # type: ignore[call-arg]


def _build_limiter_settings() -> "LimiterSettings":
    return LimiterSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class DiscordSettings(BaseSettings):
    """Discord REST API connection settings."""

    bot_token: str | None = Field(
        None,
        description="Default bot token used when a call does not override it",
    )
    api_base_url: str = Field(
        "https://discord.com/api",
        description="Base URL that endpoint paths are appended to",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Per-request transport timeout in seconds",
        gt=0,
    )
    user_agent: str = Field(
        "DiscordBot (discord-rest, 0.1.0)",
        description="User-Agent header sent with every request",
    )

    model_config = SettingsConfigDict(
        env_prefix="DISCORD_",
        case_sensitive=False,
    )


class LimiterSettings(BaseSettings):
    """Request governor settings.

    The scheduler dispatches at most one queued request per tick, so
    ``tick_interval_seconds`` also caps steady-state throughput.
    """

    tick_interval_seconds: float = Field(
        0.5,
        description="Period of the scheduler loop in seconds",
        gt=0,
    )
    cooldown_seconds: float = Field(
        5.0,
        description="Throttle duration after a 429 without a server reset hint",
        ge=0,
    )
    transport_max_retries: int = Field(
        2,
        description="Retries for a request whose transport call failed",
        ge=0,
    )
    backoff_base_seconds: float = Field(
        0.5,
        description="Base delay of the exponential transport retry backoff",
        ge=0,
    )
    backoff_max_seconds: float = Field(
        8.0,
        description="Upper bound for a single transport retry delay",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="LIMITER_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output settings consumed by configure_logging()."""

    level: str = Field("INFO", description="Root log level name")
    format: str = Field("json", description="Either 'json' or 'plain'")
    output: str = Field("stdout", description="Either 'stdout' or 'file'")
    file_path: str | None = Field(
        None,
        description="Log file path when output is 'file'",
    )
    max_bytes: int = Field(
        0,
        description="Rotate the log file at this size; 0 disables rotation",
        ge=0,
    )
    backup_count: int = Field(3, description="Rotated files to keep", ge=0)

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main settings container.

    Automatically loads from the appropriate .env.{DISCORD_REST_ENV} file.
    """

    env: str = DISCORD_REST_ENV
    discord: DiscordSettings = Field(default_factory=_build_discord_settings)
    limiter: LimiterSettings = Field(default_factory=_build_limiter_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
