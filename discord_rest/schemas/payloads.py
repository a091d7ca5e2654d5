"""Pydantic models for common request payloads.

Endpoint helpers also accept plain dicts; these models only document and
validate the fields most callers send. Unset fields are dropped when the
payload is serialized.
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class MessagePayload(BaseModel):
    """Body of create/edit message and webhook execution requests."""

    model_config = ConfigDict(extra="allow")

    content: str | None = Field(
        default=None,
        max_length=2000,
        description="Message text (up to 2000 characters).",
    )
    tts: bool | None = Field(default=None, description="Send as text-to-speech.")
    embeds: List[Dict[str, Any]] | None = Field(
        default=None,
        description="Rich embed objects (Discord accepts up to 10).",
    )
    allowed_mentions: Dict[str, Any] | None = Field(
        default=None,
        description="Controls which mentions in the content ping.",
    )
    username: str | None = Field(
        default=None,
        description="Webhook only: overrides the webhook's default username.",
    )
    avatar_url: str | None = Field(
        default=None,
        description="Webhook only: overrides the webhook's default avatar.",
    )


class ChannelPatch(BaseModel):
    """Body of modify channel requests."""

    model_config = ConfigDict(extra="allow")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    topic: str | None = Field(default=None, max_length=1024)
    nsfw: bool | None = None
    rate_limit_per_user: int | None = Field(default=None, ge=0, le=21600)
    position: int | None = None
    parent_id: str | None = None
