"""Client façade and endpoint helpers."""

from discord_rest.services.endpoints import ENDPOINTS, format_endpoint
from discord_rest.services.rest_client import DiscordRest

__all__ = ["DiscordRest", "ENDPOINTS", "format_endpoint"]
