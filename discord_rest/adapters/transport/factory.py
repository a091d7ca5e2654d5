"""Factory for the default transport."""

from discord_rest.adapters.transport.base import AbstractTransport
from discord_rest.adapters.transport.httpx_transport import HttpxTransport
from discord_rest.core.config import DiscordSettings, settings


def create_transport(discord_settings: DiscordSettings | None = None) -> AbstractTransport:
    """Build the transport described by configuration.

    Args:
        discord_settings: Optional settings; defaults to global settings if omitted.

    Returns:
        AbstractTransport: Configured transport instance.
    """
    cfg = discord_settings or settings.discord
    return HttpxTransport(
        timeout_seconds=cfg.timeout_seconds,
        user_agent=cfg.user_agent,
    )
