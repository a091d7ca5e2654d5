"""Request payload models."""

from discord_rest.schemas.payloads import ChannelPatch, MessagePayload

__all__ = ["ChannelPatch", "MessagePayload"]
