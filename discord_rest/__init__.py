"""Rate-limited client for the Discord REST API."""

from discord_rest.core.errors import AppError, DiscordAPIError, TransportAppError, ValidationAppError
from discord_rest.limiter import HttpMethod, LimiterSnapshot, RequestDescriptor
from discord_rest.services.rest_client import DiscordRest

__all__ = [
    "AppError",
    "DiscordAPIError",
    "DiscordRest",
    "HttpMethod",
    "LimiterSnapshot",
    "RequestDescriptor",
    "TransportAppError",
    "ValidationAppError",
]

__version__ = "0.1.0"
