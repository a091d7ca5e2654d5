"""Tests for environment-driven configuration."""

import pytest
from pydantic import ValidationError

from discord_rest.core.config import DiscordSettings, LimiterSettings, LogSettings, Settings


def test_limiter_defaults() -> None:
    limiter = LimiterSettings()

    assert limiter.tick_interval_seconds == 0.5
    assert limiter.cooldown_seconds == 5.0
    assert limiter.transport_max_retries == 2


def test_limiter_reads_prefixed_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LIMITER_TICK_INTERVAL_SECONDS", "0.25")
    monkeypatch.setenv("LIMITER_COOLDOWN_SECONDS", "10")

    limiter = LimiterSettings()

    assert limiter.tick_interval_seconds == 0.25
    assert limiter.cooldown_seconds == 10.0


def test_discord_reads_prefixed_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "env-token")
    monkeypatch.setenv("DISCORD_API_BASE_URL", "https://example.test/api")

    discord = DiscordSettings()

    assert discord.bot_token == "env-token"
    assert discord.api_base_url == "https://example.test/api"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"tick_interval_seconds": 0},
        {"cooldown_seconds": -1},
        {"transport_max_retries": -1},
    ],
)
def test_invalid_limiter_values(kwargs: dict) -> None:
    with pytest.raises(ValidationError):
        LimiterSettings(**kwargs)


def test_settings_composes_sections() -> None:
    settings = Settings()

    assert isinstance(settings.discord, DiscordSettings)
    assert isinstance(settings.limiter, LimiterSettings)
    assert isinstance(settings.log, LogSettings)
    assert settings.env == "testing"
