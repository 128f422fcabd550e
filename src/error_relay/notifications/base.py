"""Abstract base class for notification sink implementations.

This module defines the contract that all notification sinks (chat webhook,
log ingestion, etc.) must implement. The NotificationSink ABC enables the
adapter pattern for extensible notification targets.

Sinks MUST implement async send() that NEVER raises exceptions.
All errors are logged internally and return False. notify() wraps send() in
a background task so the caller is never blocked by network I/O.

Example:
    >>> class PagerSink(NotificationSink):
    ...     @property
    ...     def sink_name(self) -> str:
    ...         return "pager"
    ...
    ...     async def send(self, event: ErrorEvent) -> bool:
    ...         try:
    ...             # Deliver notification via pager API
    ...             ...
    ...             return True
    ...         except Exception as e:
    ...             logger.error(
    ...                 "Notification failed: sink=%s, error_id=%s, error=%s",
    ...                 self.sink_name, event.id, str(e)
    ...             )
    ...             return False

"""

import asyncio
import logging
from abc import ABC, abstractmethod

import httpx

from error_relay.core.tasks import spawn_background
from error_relay.tracker.events import ErrorEvent

logger = logging.getLogger(__name__)


class NotificationSink(ABC):
    """Abstract base class for notification sinks.

    Concrete implementations must implement:
        - sink_name: Unique identifier for this sink
        - send(): Async method to deliver one event (NEVER raises)

    All implementations must follow the fire-and-forget pattern:
    - send() must NEVER raise exceptions
    - All errors are logged internally at ERROR level
    - Return True on success, False on failure or skip

    Configuration is fixed at construction; sinks keep no per-event state,
    so one instance may serve many concurrent deliveries.
    """

    @property
    @abstractmethod
    def sink_name(self) -> str:
        """Unique identifier for this sink (e.g., 'discord', 'elk')."""
        ...

    @abstractmethod
    async def send(self, event: ErrorEvent) -> bool:
        """Deliver event. Returns True on success, False on failure.

        MUST NOT raise exceptions - all errors logged internally.

        Args:
            event: The error event being delivered.

        Returns:
            True if the event was delivered, False otherwise.

        """
        ...

    def notify(self, event: ErrorEvent) -> asyncio.Task[bool]:
        """Schedule delivery of event in the background and return at once.

        Must be called from within a running event loop.

        Args:
            event: The error event to deliver.

        Returns:
            The delivery task. Awaiting it is optional.

        """
        return spawn_background(self.send(event), name=f"{self.sink_name}-{event.id}")

    async def aclose(self) -> None:
        """Release transport resources. Default: nothing to release."""


class HttpSink(NotificationSink):
    """Base for sinks that POST JSON to a single URL.

    Holds one httpx.AsyncClient, shared read-only by concurrent deliveries.

    Args:
        url: Target URL, or None/empty when unconfigured (send() skips).
        timeout: Transport timeout in seconds.
        transport: Optional httpx transport (tests inject MockTransport).

    """

    def __init__(
        self,
        url: str | None,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url or None
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def url(self) -> str | None:
        return self._url

    @property
    def is_configured(self) -> bool:
        return self._url is not None

    async def _post_json(self, payload: dict, auth: httpx.BasicAuth | None = None) -> httpx.Response:
        """POST payload as JSON to the configured URL.

        Raises:
            ValueError: If no URL is configured.
            httpx.HTTPError: On transport failure.

        """
        if self._url is None:
            raise ValueError(f"{self.sink_name} URL not configured")
        return await self._client.post(self._url, json=payload, auth=auth)

    async def aclose(self) -> None:
        await self._client.aclose()
