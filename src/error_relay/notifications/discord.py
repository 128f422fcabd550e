"""Chat webhook sink (Discord embed format).

Formats an ErrorEvent into a single embed within the platform's payload
limits and POSTs it to the webhook URL. Truncation counts Unicode code
points, so multi-byte characters are never split.

Embed limits applied:
    title         256 chars, "..." replaces the last 3 chars when cut
    description   2048 chars, hard cut
    Details       1024 chars, "..." replaces the last 3 chars when cut
    Stack Trace   first 900 chars of the trace + "..." when cut, in a code block
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from error_relay.core.timing import format_iso
from error_relay.notifications.base import HttpSink
from error_relay.tracker.events import ErrorEvent

logger = logging.getLogger(__name__)

CHAT_TIMEOUT = 10.0
ERROR_COLOR = 15158332  # red

TITLE_LIMIT = 256
DESCRIPTION_LIMIT = 2048
DETAILS_LIMIT = 1024
STACK_TRACE_LIMIT = 900
ELLIPSIS = "..."


def truncate(text: str, limit: int) -> str:
    """Cut text to limit chars, ending in "..." when cut.

    Examples:
        >>> truncate("abcdef", 5)
        'ab...'
        >>> truncate("abc", 5)
        'abc'

    """
    if len(text) <= limit:
        return text
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


def truncate_stack_trace(stack_trace: str) -> str:
    """Keep the first STACK_TRACE_LIMIT chars, appending "..." when cut."""
    if len(stack_trace) <= STACK_TRACE_LIMIT:
        return stack_trace
    return stack_trace[:STACK_TRACE_LIMIT] + ELLIPSIS


def format_details(details: dict[str, Any]) -> str:
    """Render details as one bullet line per key.

    Examples:
        >>> format_details({"database": "postgres", "port": 5432})
        '• database: postgres\\n• port: 5432\\n'

    """
    return "".join(f"• {key}: {value}\n" for key, value in details.items())


def build_embed(event: ErrorEvent, environment: str | None = None) -> dict[str, Any]:
    """Build the embed for event.

    Args:
        event: Event to render.
        environment: Fallback label when the event carries none.

    Returns:
        Embed dict with title, description, color, fields and timestamp.

    """
    description = f"Error: {event.message}\nContext: {event.context}"

    fields: list[dict[str, Any]] = []
    if event.details:
        fields.append(
            {
                "name": "Details",
                "value": truncate(format_details(event.details), DETAILS_LIMIT),
                "inline": False,
            }
        )

    env = event.environment or environment
    if env:
        fields.append({"name": "Environment", "value": env, "inline": True})

    if event.stack_trace:
        fields.append(
            {
                "name": "Stack Trace",
                "value": f"```\n{truncate_stack_trace(event.stack_trace)}\n```",
                "inline": False,
            }
        )

    return {
        "title": truncate(f"Error: {event.id}", TITLE_LIMIT),
        "description": description[:DESCRIPTION_LIMIT],
        "color": ERROR_COLOR,
        "fields": fields,
        "timestamp": format_iso(event.timestamp),
    }


def build_message(event: ErrorEvent, environment: str | None = None) -> dict[str, Any]:
    """Build the full webhook payload for event."""
    return {"embeds": [build_embed(event, environment)]}


class DiscordNotifier(HttpSink):
    """Chat sink posting error embeds to a Discord-compatible webhook.

    Args:
        webhook_url: Webhook URL; when empty, notifications are skipped.
        environment: Label shown in the "Environment" field when the event
            does not carry one.
        timeout: Transport timeout in seconds.
        transport: Optional httpx transport for tests.

    """

    def __init__(
        self,
        webhook_url: str | None,
        environment: str | None = None,
        timeout: float = CHAT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(webhook_url, timeout=timeout, transport=transport)
        self._environment = environment

    @property
    def sink_name(self) -> str:
        return "discord"

    async def send(self, event: ErrorEvent) -> bool:
        if not self.is_configured:
            logger.info("Discord webhook URL not configured, skipping notification")
            return False

        try:
            message = build_message(event, self._environment)
            response = await self._post_json(message)
        except Exception as e:
            logger.error(
                "Notification failed: sink=%s, error_id=%s, error=%s",
                self.sink_name,
                event.id,
                str(e) or type(e).__name__,
            )
            return False

        if not response.is_success:
            logger.error(
                "Discord webhook returned error status: %d (error_id=%s)",
                response.status_code,
                event.id,
            )
            return False

        logger.info("Error notification sent to Discord: %s", message["embeds"][0]["title"])
        return True
