"""Discord REST endpoint URL formatting."""

from __future__ import annotations

from typing import Any, Mapping, Sequence
from urllib.parse import quote, urlencode

from discord_rest.core.errors import ValidationAppError

ENDPOINTS: dict[str, str] = {
    "channel": "/channels/{}",
    "message": "/channels/{}/messages/{}",
    "messages": "/channels/{}/messages",
    "ownReaction": "/channels/{}/messages/{}/reactions/{}/@me",
    "reactions": "/channels/{}/messages/{}/reactions/{}",
    "userReaction": "/channels/{}/messages/{}/reactions/{}/{}",
    "user": "/users/{}",
}


def create_query_string(parameters: Mapping[str, Any] | None) -> str:
    """Build ``?k=v&...`` from options, or an empty string when there are none.

    None values are skipped and booleans are sent as ``true``/``false``.
    """
    if not parameters:
        return ""

    pairs = [
        (key, str(value).lower() if isinstance(value, bool) else value)
        for key, value in parameters.items()
        if value is not None
    ]
    if not pairs:
        return ""
    return "?" + urlencode(pairs)


def format_endpoint(
    name: str,
    variables: Sequence[Any] | str | int,
    parameters: Mapping[str, Any] | None = None,
    *,
    base_url: str,
) -> str:
    """Format a fully-qualified endpoint URL.

    Args:
        name: Key in ENDPOINTS.
        variables: Path variables (a single value or a sequence), URL-quoted.
        parameters: Optional query parameters.
        base_url: API base URL, e.g. ``https://discord.com/api``.

    Returns:
        The endpoint URL.

    Raises:
        ValidationAppError: If the endpoint name is unknown or the number of
            variables does not match the path template.
    """
    template = ENDPOINTS.get(name)
    if template is None:
        raise ValidationAppError(
            code="unknown_endpoint",
            message=f"Unknown endpoint: '{name}'",
            details={"endpoint": name},
        )

    if isinstance(variables, (str, int)):
        variables = [variables]

    expected = template.count("{}")
    if len(variables) != expected:
        raise ValidationAppError(
            code="endpoint_arity",
            message=f"Endpoint '{name}' takes {expected} path variables, got {len(variables)}",
            details={"endpoint": name},
        )

    path = template.format(*(quote(str(v), safe="") for v in variables))
    return base_url.rstrip("/") + path + create_query_string(parameters)
