"""Pytest configuration and fixtures for error-relay tests."""

from collections.abc import Callable
from datetime import datetime

import httpx
import pytest

from error_relay.core.timing import reset_clock, set_clock
from error_relay.tracker.events import ErrorEvent

FIXED_NOW = datetime(2025, 1, 31, 12, 0, 5)


@pytest.fixture(autouse=True)
def fixed_clock():
    """Pin the injectable clock so timestamps and error IDs are predictable."""
    set_clock(lambda: FIXED_NOW)
    yield FIXED_NOW
    reset_clock()


@pytest.fixture
def make_event() -> Callable[..., ErrorEvent]:
    """Factory for ErrorEvents with sensible defaults."""

    def _make(**overrides) -> ErrorEvent:
        fields = {
            "id": "ERR-20250131-9F3A0C1E",
            "original": TimeoutError("connection to database timed out after 30s"),
            "context": "failed to connect to PostgreSQL",
            "details": {"database": "postgres", "port": 5432},
        }
        fields.update(overrides)
        return ErrorEvent(**fields)

    return _make


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it receives.

    Args:
        status_code: Status returned for every request.
        exc: Exception raised instead of responding (simulates unreachable host).

    """

    def __init__(self, status_code: int = 204, exc: Exception | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = status_code
        self.exc = exc
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        return httpx.Response(self.status_code, text='{"error_id": "ERR-X"}')


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def transport_factory() -> Callable[..., RecordingTransport]:
    """Build RecordingTransports with a custom status or exception."""
    return RecordingTransport
