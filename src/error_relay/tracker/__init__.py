"""Error tracking: event model, tracker and request recovery boundary."""

from error_relay.tracker.events import (
    ErrorEvent,
    TrackedError,
    UnrecoveredFault,
    describe_error,
)
from error_relay.tracker.recovery import RecoveryMiddleware, UnrecoveredFaultMiddleware
from error_relay.tracker.tracker import (
    ErrorLogger,
    ErrorTracker,
    StdlibErrorLogger,
    TrackerConfig,
    generate_error_id,
)

__all__ = [
    "ErrorEvent",
    "ErrorLogger",
    "ErrorTracker",
    "RecoveryMiddleware",
    "StdlibErrorLogger",
    "TrackedError",
    "TrackerConfig",
    "UnrecoveredFault",
    "UnrecoveredFaultMiddleware",
    "describe_error",
    "generate_error_id",
]
