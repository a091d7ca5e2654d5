"""Transport adapter layer - issues fully-formed HTTP requests."""

from discord_rest.adapters.transport.base import AbstractTransport, TransportResponse
from discord_rest.adapters.transport.factory import create_transport
from discord_rest.adapters.transport.httpx_transport import HttpxTransport

__all__ = [
    "AbstractTransport",
    "HttpxTransport",
    "TransportResponse",
    "create_transport",
]
