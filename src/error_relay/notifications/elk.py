"""Log-ingestion sink (ELK / Logstash HTTP input).

Every event is first echoed to the local log as a one-line summary, then
posted as a flat JSON record:

    {
        "timestamp": "2025-01-31T12:00:05Z",
        "error_id": "ERR-20250131-9F3A0C1E",
        "error_type": "tracked",
        "context": "failed to connect to PostgreSQL",
        "error": "connection to database timed out after 30s",
        "service": "error-relay",
        "level": "error",
        "environment": "production",
        "database": "postgres",      # details merged at top level
        "port": 5432,
    }

Details are merged after the reserved fields, so a detail key named like a
reserved field (e.g. "level") overwrites it.

ElkLogger also satisfies the tracker's ErrorLogger protocol
(info()/error()).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from pydantic_core import to_jsonable_python

from error_relay import SERVICE_NAME
from error_relay.core.timing import format_rfc3339
from error_relay.notifications.base import HttpSink
from error_relay.tracker.events import ErrorEvent, describe_error
from error_relay.tracker.tracker import UNKNOWN_CONTEXT, generate_error_id

logger = logging.getLogger(__name__)

LOG_TIMEOUT = 5.0
ERROR_TYPE = "tracked"
LEVEL = "error"

RESERVED_FIELDS: tuple[str, ...] = (
    "timestamp",
    "error_id",
    "error_type",
    "context",
    "error",
    "service",
    "level",
    "environment",
)


def build_log_record(
    event: ErrorEvent,
    environment: str | None = None,
    service: str = SERVICE_NAME,
) -> dict[str, Any]:
    """Build the flat log record for event.

    Args:
        event: Event to render.
        environment: Fallback label when the event carries none.
        service: Service name field.

    Returns:
        Reserved fields followed by every detail key (last write wins),
        with values converted to JSON-compatible types (datetimes as ISO
        strings, anything unknown as str()).

    """
    record: dict[str, Any] = {
        "timestamp": format_rfc3339(event.timestamp),
        "error_id": event.id,
        "error_type": ERROR_TYPE,
        "context": event.context,
        "error": event.message,
        "service": service,
        "level": LEVEL,
        "environment": event.environment or environment or "",
    }
    record.update(event.details)
    return to_jsonable_python(record, fallback=str)


class ElkLogger(HttpSink):
    """Log sink posting structured records to a log-ingestion endpoint.

    Args:
        elk_url: Ingestion URL; when empty, network delivery is skipped but
            the local summary is still logged.
        username: Basic-auth username.
        password: Basic-auth password. Auth is attached only when both
            username and password are set.
        environment: Label used when the event does not carry one.
        service: Service name written into every record.
        timeout: Transport timeout in seconds.
        transport: Optional httpx transport for tests.

    """

    def __init__(
        self,
        elk_url: str | None,
        username: str | None = None,
        password: str | None = None,
        environment: str | None = None,
        service: str = SERVICE_NAME,
        timeout: float = LOG_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(elk_url, timeout=timeout, transport=transport)
        self._auth = httpx.BasicAuth(username, password) if username and password else None
        self._environment = environment
        self._service = service

    @property
    def sink_name(self) -> str:
        return "elk"

    @property
    def uses_auth(self) -> bool:
        return self._auth is not None

    def info(self, message: str) -> None:
        """Log an operational message locally. Never sent over the network."""
        logger.info("%s", message)

    def error(
        self,
        error_id: str,
        err: BaseException,
        context: str,
        details: dict[str, Any] | None,
    ) -> None:
        """ErrorLogger entry point: summarize locally, then ship in background."""
        self.notify(
            ErrorEvent(
                id=error_id or generate_error_id(),
                original=err,
                context=context or UNKNOWN_CONTEXT,
                details=details or {},
                environment=self._environment,
            )
        )

    def notify(self, event: ErrorEvent) -> asyncio.Task[bool]:
        """Log the one-line summary synchronously, then deliver in background."""
        self._log_summary(event)
        return super().notify(event)

    async def send(self, event: ErrorEvent) -> bool:
        if not self.is_configured:
            logger.debug("ELK URL not configured, skipping shipment of %s", event.id)
            return False

        try:
            record = build_log_record(event, self._environment, self._service)
            response = await self._post_json(record, auth=self._auth)
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
                "ELK returned error status: %d (error_id=%s)", response.status_code, event.id
            )
            return False

        return True

    def _log_summary(self, event: ErrorEvent) -> None:
        logger.error(
            "[ERROR-ID] ID=%s | Context=%s | Error=%s",
            event.id,
            event.context,
            describe_error(event.original),
        )
