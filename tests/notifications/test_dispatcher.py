"""Tests for NotificationDispatcher.

Tests cover:
- Fan-out to every registered sink
- on_error returns immediately with async delivery
- A slow or failing sink does not delay or prevent other sinks
- Option handling (environment stamp, stack trace stripping, sync mode)
"""

import asyncio
import json
import logging

import httpx
import pytest

from error_relay.core.tasks import drain_background_tasks
from error_relay.notifications import (
    DiscordNotifier,
    DispatchOptions,
    ElkLogger,
    NotificationDispatcher,
    NotificationSink,
)
from error_relay.tracker.events import ErrorEvent


class RecordingSink(NotificationSink):
    """Sink that records delivered events."""

    def __init__(self, name: str = "recording", result: bool = True) -> None:
        self._name = name
        self._result = result
        self.events: list[ErrorEvent] = []

    @property
    def sink_name(self) -> str:
        return self._name

    async def send(self, event: ErrorEvent) -> bool:
        self.events.append(event)
        return self._result


class BlockingSink(NotificationSink):
    """Sink that never finishes until released."""

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    @property
    def sink_name(self) -> str:
        return "blocking"

    async def send(self, event: ErrorEvent) -> bool:
        self.started.set()
        await self.release.wait()
        return True


class RaisingSink(NotificationSink):
    """Sink that violates the contract by raising."""

    @property
    def sink_name(self) -> str:
        return "raising"

    async def send(self, event: ErrorEvent) -> bool:
        raise RuntimeError("sink exploded")


class TestFanOut:
    """Test dispatch to all sinks."""

    async def test_every_sink_receives_event(self, make_event) -> None:
        first, second = RecordingSink("first"), RecordingSink("second")
        dispatcher = NotificationDispatcher([first, second], DispatchOptions(async_delivery=False))

        await dispatcher.on_error(make_event())

        assert len(first.events) == 1
        assert len(second.events) == 1

    async def test_no_sinks_is_noop(self, make_event) -> None:
        dispatcher = NotificationDispatcher([], DispatchOptions())
        await dispatcher.on_error(make_event())

    async def test_aggregate_result_logged(
        self, make_event, caplog: pytest.LogCaptureFixture
    ) -> None:
        sinks = [RecordingSink("ok"), RecordingSink("bad", result=False)]
        dispatcher = NotificationDispatcher(sinks, DispatchOptions(async_delivery=False))
        with caplog.at_level(logging.INFO):
            await dispatcher.on_error(make_event())
        assert "to 1/2 sinks" in caplog.text
        assert "Sink bad did not deliver" in caplog.text


class TestNonBlocking:
    """Test on_error never waits on sinks in async mode."""

    async def test_on_error_returns_before_sinks_finish(self, make_event) -> None:
        blocking = BlockingSink()
        dispatcher = NotificationDispatcher([blocking], DispatchOptions(async_delivery=True))

        await asyncio.wait_for(dispatcher.on_error(make_event()), timeout=1)

        await asyncio.wait_for(blocking.started.wait(), timeout=1)
        blocking.release.set()
        assert await drain_background_tasks(timeout=5) is True

    async def test_slow_sink_does_not_delay_other_sink(self, make_event) -> None:
        blocking = BlockingSink()
        fast = RecordingSink("fast")
        dispatcher = NotificationDispatcher([blocking, fast], DispatchOptions(async_delivery=True))

        await dispatcher.on_error(make_event())
        await asyncio.sleep(0.05)

        assert len(fast.events) == 1
        blocking.release.set()
        await drain_background_tasks(timeout=5)

    async def test_raising_sink_does_not_prevent_other_sink(
        self, make_event, caplog: pytest.LogCaptureFixture
    ) -> None:
        fast = RecordingSink("fast")
        dispatcher = NotificationDispatcher([RaisingSink(), fast], DispatchOptions(async_delivery=False))

        with caplog.at_level(logging.ERROR):
            await dispatcher.on_error(make_event())

        assert len(fast.events) == 1
        assert "Sink raising raised exception: sink exploded" in caplog.text

    async def test_unreachable_chat_sink_does_not_block_log_sink(
        self, make_event, transport_factory
    ) -> None:
        """Real sinks: the chat endpoint is unreachable, the log endpoint still gets the event."""
        chat_transport = transport_factory(exc=httpx.ConnectError("unreachable"))
        log_transport = transport_factory(status_code=200)
        chat = DiscordNotifier("https://chat.example/hook", transport=chat_transport)
        log = ElkLogger("https://logs.example/ingest", transport=log_transport)
        dispatcher = NotificationDispatcher([chat, log], DispatchOptions(async_delivery=True))

        await dispatcher.on_error(make_event())
        assert await drain_background_tasks(timeout=5) is True

        assert len(chat_transport.requests) == 1
        assert len(log_transport.requests) == 1
        body = json.loads(log_transport.requests[0].content)
        assert body["error_id"] == "ERR-20250131-9F3A0C1E"


class TestOptions:
    """Test DispatchOptions handling."""

    async def test_environment_stamped_when_missing(self, make_event) -> None:
        sink = RecordingSink()
        dispatcher = NotificationDispatcher(
            [sink], DispatchOptions(async_delivery=False, environment="production")
        )
        await dispatcher.on_error(make_event())
        assert sink.events[0].environment == "production"

    async def test_existing_environment_kept(self, make_event) -> None:
        sink = RecordingSink()
        dispatcher = NotificationDispatcher(
            [sink], DispatchOptions(async_delivery=False, environment="production")
        )
        await dispatcher.on_error(make_event(environment="staging"))
        assert sink.events[0].environment == "staging"

    async def test_stack_trace_stripped_when_disabled(self, make_event) -> None:
        sink = RecordingSink()
        dispatcher = NotificationDispatcher(
            [sink], DispatchOptions(async_delivery=False, include_stack_trace=False)
        )
        await dispatcher.on_error(make_event(stack_trace="Traceback ..."))
        assert sink.events[0].stack_trace is None

    async def test_stack_trace_forwarded_when_enabled(self, make_event) -> None:
        sink = RecordingSink()
        dispatcher = NotificationDispatcher([sink], DispatchOptions(async_delivery=False))
        await dispatcher.on_error(make_event(stack_trace="Traceback ..."))
        assert sink.events[0].stack_trace == "Traceback ..."

    async def test_sync_mode_waits_for_sinks(self, make_event) -> None:
        sink = RecordingSink()
        dispatcher = NotificationDispatcher([sink], DispatchOptions(async_delivery=False))
        await dispatcher.on_error(make_event())
        # No background draining needed: delivery finished before on_error returned
        assert len(sink.events) == 1
