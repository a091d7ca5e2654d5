"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any discord_rest import so the global
settings never pick up a developer's .env file.
"""

from __future__ import annotations

import os

import pytest

os.environ["DISCORD_REST_ENV"] = "testing"
os.environ.setdefault("DISCORD_BOT_TOKEN", "test-bot-token")
os.environ.setdefault("DISCORD_API_BASE_URL", "https://discord.test/api")

from fakes import FakeClock, FakeTransport  # noqa: E402


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
