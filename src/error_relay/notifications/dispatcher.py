"""Event dispatcher for the notification pipeline.

This module provides the NotificationDispatcher class that fans each
ErrorEvent out to every registered sink, and DispatchOptions for its
behavior. The dispatcher is constructed once at startup and its on_error
method is registered as the tracker's callback.

Example:
    >>> options = DispatchOptions(async_delivery=True, environment="production")
    >>> dispatcher = NotificationDispatcher([discord, elk], options)
    >>> tracker = ErrorTracker(TrackerConfig(on_error=dispatcher.on_error))

"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from error_relay.core.tasks import spawn_background
from error_relay.notifications.base import NotificationSink
from error_relay.tracker.events import ErrorEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchOptions:
    """Dispatcher behavior, fixed at construction.

    Attributes:
        async_delivery: Return from on_error before sinks finish (True) or
            wait for every sink to finish (False).
        include_stack_trace: Forward stack traces to sinks; when False the
            trace is stripped from outgoing events.
        environment: Label stamped on events that do not carry one.

    """

    async_delivery: bool = True
    include_stack_trace: bool = True
    environment: str | None = None


class NotificationDispatcher:
    """Dispatches error events to registered notification sinks.

    Every sink gets its own delivery task per event, so a slow or failing
    sink cannot delay or prevent delivery to the others. Failures are
    logged but never raised to the caller.

    Example:
        >>> dispatcher = NotificationDispatcher([DiscordNotifier(url)], DispatchOptions())
        >>> await dispatcher.on_error(event)  # returns immediately

    """

    def __init__(
        self,
        sinks: Sequence[NotificationSink] = (),
        options: DispatchOptions | None = None,
    ) -> None:
        """Initialize dispatcher with sinks and options.

        Args:
            sinks: Sinks to deliver to, in registration order.
            options: Dispatch behavior; defaults to DispatchOptions().

        """
        self._sinks: tuple[NotificationSink, ...] = tuple(sinks)
        self._options = options or DispatchOptions()
        logger.info(
            "Notification dispatcher initialized with %d sinks: %s",
            len(self._sinks),
            ", ".join(sink.sink_name for sink in self._sinks) or "none",
        )

    @property
    def sinks(self) -> tuple[NotificationSink, ...]:
        return self._sinks

    @property
    def options(self) -> DispatchOptions:
        return self._options

    def prepare(self, event: ErrorEvent) -> ErrorEvent:
        """Apply options to event (environment stamp, stack trace policy)."""
        update: dict[str, object] = {}
        if event.environment is None and self._options.environment:
            update["environment"] = self._options.environment
        if not self._options.include_stack_trace and event.stack_trace is not None:
            update["stack_trace"] = None
        if not update:
            return event
        return event.model_copy(update=update)

    async def on_error(self, event: ErrorEvent) -> None:
        """Tracker callback: start delivery of event to every sink.

        Starts one task per sink before returning. With async_delivery the
        call returns without waiting; otherwise it waits for all sinks.

        Args:
            event: Event to deliver.

        """
        if not self._sinks:
            logger.debug("No sinks configured, skipping dispatch of %s", event.id)
            return

        event = self.prepare(event)
        tasks = [self._start(sink, event) for sink in self._sinks]

        if self._options.async_delivery:
            spawn_background(self._collect(event, tasks), name=f"dispatch-{event.id}")
        else:
            await self._collect(event, tasks)

    def _start(self, sink: NotificationSink, event: ErrorEvent) -> asyncio.Task[bool]:
        """Start one sink's delivery, isolating synchronous failures."""
        try:
            return sink.notify(event)
        except Exception as e:
            logger.error("Sink %s raised exception: %s", sink.sink_name, str(e))
            return spawn_background(_failed(), name=f"{sink.sink_name}-{event.id}-failed")

    async def _collect(self, event: ErrorEvent, tasks: list[asyncio.Task[bool]]) -> None:
        """Wait for delivery tasks and log aggregate results."""
        results = await asyncio.gather(*tasks, return_exceptions=True)

        success_count = sum(1 for r in results if r is True)
        logger.info(
            "Dispatched error_id=%s to %d/%d sinks",
            event.id,
            success_count,
            len(self._sinks),
        )

        for sink, result in zip(self._sinks, results, strict=True):
            if isinstance(result, BaseException):
                logger.error("Sink %s raised exception: %s", sink.sink_name, str(result))
            elif result is False:
                logger.warning("Sink %s did not deliver %s", sink.sink_name, event.id)


async def _failed() -> bool:
    return False
