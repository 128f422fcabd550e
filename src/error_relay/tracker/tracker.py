"""Error tracker: turns raised failures into ErrorEvents.

The tracker assigns each failure a support-friendly ID, builds the
ErrorEvent, and hands it to the configured callback exactly once. It also
renders the JSON body returned to HTTP callers, so a user can quote the ID
when contacting support.

The tracker is configured explicitly with a TrackerConfig and passed to the
HTTP layer by reference; there is no module-level tracker instance.

Example:
    >>> dispatcher = NotificationDispatcher(sinks, options)
    >>> tracker = ErrorTracker(TrackerConfig(on_error=dispatcher.on_error))
    >>> event = await tracker.capture(err, "failed to connect to PostgreSQL")

"""

from __future__ import annotations

import logging
import secrets
import traceback
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from error_relay.core.tasks import spawn_background
from error_relay.core.timing import utc_now
from error_relay.tracker.events import ErrorEvent, TrackedError, describe_error

logger = logging.getLogger(__name__)

ERROR_ID_PREFIX = "ERR"
PUBLIC_ERROR_MESSAGE = "An internal error occurred. Please contact support with the error ID."
UNKNOWN_CONTEXT = "unknown operation"

ErrorCallback = Callable[[ErrorEvent], Awaitable[None]]


@runtime_checkable
class ErrorLogger(Protocol):
    """Narrow logging capability consumed by the tracker.

    Any object with these two methods qualifies; ElkLogger is the
    production implementation.
    """

    def info(self, message: str) -> None:
        """Log an operational message locally."""
        ...

    def error(
        self,
        error_id: str,
        err: BaseException,
        context: str,
        details: dict[str, Any] | None,
    ) -> None:
        """Report a tracked error."""
        ...


class StdlibErrorLogger:
    """ErrorLogger backed by the module logger, used when none is configured."""

    def info(self, message: str) -> None:
        logger.info("%s", message)

    def error(
        self,
        error_id: str,
        err: BaseException,
        context: str,
        details: dict[str, Any] | None,
    ) -> None:
        logger.error("[ERROR-ID] ID=%s | Context=%s | Error=%s", error_id, context, describe_error(err))


@dataclass(frozen=True)
class TrackerConfig:
    """Tracker configuration, set once at startup.

    Attributes:
        on_error: Async callback invoked once per event (usually
            NotificationDispatcher.on_error).
        async_callback: Run the callback in the background instead of
            awaiting it on the request path.
        logger: Logging collaborator for operational messages; also receives
            events when no callback is configured.
        include_stack_trace: Capture the traceback of reported exceptions.
        environment: Deployment label stamped on every event.

    """

    on_error: ErrorCallback | None = None
    async_callback: bool = True
    logger: ErrorLogger | None = None
    include_stack_trace: bool = False
    environment: str | None = None


def generate_error_id() -> str:
    """Generate a unique error ID like ERR-20250131-9F3A0C1E."""
    return f"{ERROR_ID_PREFIX}-{utc_now():%Y%m%d}-{secrets.token_hex(4).upper()}"


def format_stack_trace(err: BaseException) -> str | None:
    """Format the traceback attached to err, or None if it was never raised."""
    if err.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(err)).rstrip()


class ErrorTracker:
    """Builds ErrorEvents and reports them to the configured callback."""

    def __init__(self, config: TrackerConfig) -> None:
        self._config = config
        self._logger: ErrorLogger = config.logger or StdlibErrorLogger()
        self._logger.info(
            f"Error tracking configured (environment={config.environment or 'unset'}, "
            f"async_callback={config.async_callback}, "
            f"stack_traces={config.include_stack_trace})"
        )

    @property
    def config(self) -> TrackerConfig:
        return self._config

    @staticmethod
    def wrap_with_details(
        err: BaseException,
        context: str,
        details: dict[str, Any] | None = None,
        status_code: int = 500,
    ) -> TrackedError:
        """Wrap err with context and metadata for raising from a handler."""
        return TrackedError(err, context, details, status_code=status_code)

    def build_event(
        self,
        err: BaseException,
        context: str,
        details: dict[str, Any] | None = None,
        stack_trace: str | None = None,
    ) -> ErrorEvent:
        """Create a fully populated ErrorEvent without reporting it.

        Args:
            err: Original exception.
            context: Description of the failed operation.
            details: Optional metadata.
            stack_trace: Explicit trace; when None and stack traces are
                enabled, taken from err's traceback.

        Returns:
            New ErrorEvent with a fresh ID.

        """
        if self._config.include_stack_trace:
            if stack_trace is None:
                stack_trace = format_stack_trace(err)
        else:
            stack_trace = None

        return ErrorEvent(
            id=generate_error_id(),
            original=err,
            context=context or UNKNOWN_CONTEXT,
            details=details or {},
            stack_trace=stack_trace,
            environment=self._config.environment,
        )

    async def report(self, event: ErrorEvent) -> None:
        """Hand event to the callback exactly once.

        Callback failures are logged and never reach the caller.
        """
        callback = self._config.on_error
        if callback is None:
            self._logger.error(event.id, event.original, event.context, event.details)
            return

        if self._config.async_callback:
            spawn_background(self._invoke(callback, event), name=f"on-error-{event.id}")
        else:
            await self._invoke(callback, event)

    async def capture(
        self,
        err: BaseException,
        context: str,
        details: dict[str, Any] | None = None,
        stack_trace: str | None = None,
    ) -> ErrorEvent:
        """Build an event for err and report it.

        Returns:
            The reported event, so the caller can render its ID.

        """
        event = self.build_event(err, context, details, stack_trace)
        await self.report(event)
        return event

    async def capture_tracked(self, err: TrackedError) -> ErrorEvent:
        """Capture a TrackedError using its own context and details."""
        stack_trace = None
        if self._config.include_stack_trace:
            stack_trace = format_stack_trace(err) or format_stack_trace(err.original)
        return await self.capture(err.original, err.context, err.details, stack_trace)

    @staticmethod
    def error_response(event: ErrorEvent) -> dict[str, Any]:
        """Render the caller-visible JSON body for event."""
        return {
            "error_id": event.id,
            "message": PUBLIC_ERROR_MESSAGE,
            "timestamp": int(event.timestamp.timestamp()),
        }

    async def _invoke(self, callback: ErrorCallback, event: ErrorEvent) -> None:
        try:
            await callback(event)
        except Exception as e:
            logger.error("Error callback failed: error_id=%s, error=%s", event.id, str(e))
