"""Recovery boundary for request handling.

Two ASGI middlewares:

- RecoveryMiddleware converts TrackedError (domain failures) and any other
  Exception (recovered faults) into an ErrorEvent plus a JSON 500 response.
- UnrecoveredFaultMiddleware sits outside it and terminates the process when
  an UnrecoveredFault escapes, since that fault is defined as having no
  graceful response.
"""

from __future__ import annotations

import logging
import os

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from error_relay.tracker.events import TrackedError, UnrecoveredFault, describe_error
from error_relay.tracker.tracker import ErrorTracker

logger = logging.getLogger(__name__)

RECOVERED_CONTEXT = "panic recovered"
UNRECOVERED_EXIT_CODE = 2


class RecoveryMiddleware:
    """Catch in-request failures and answer with the tracker's error body.

    Args:
        app: Wrapped ASGI application.
        tracker: Tracker used to build and report events.

    """

    def __init__(self, app: ASGIApp, tracker: ErrorTracker) -> None:
        self.app = app
        self.tracker = tracker

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except TrackedError as exc:
            if response_started:
                raise
            event = await self.tracker.capture_tracked(exc)
            status_code = exc.status_code
        except Exception as exc:
            if response_started:
                raise
            logger.warning(
                "Recovered fault in %s %s: %s",
                scope.get("method"),
                scope.get("path"),
                describe_error(exc),
            )
            event = await self.tracker.capture(
                exc,
                RECOVERED_CONTEXT,
                {"method": scope.get("method", ""), "path": scope.get("path", "")},
            )
            status_code = 500
        else:
            return

        response = JSONResponse(self.tracker.error_response(event), status_code=status_code)
        await response(scope, receive, send)


class UnrecoveredFaultMiddleware:
    """Terminate the process when an UnrecoveredFault escapes a handler."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await self.app(scope, receive, send)
        except UnrecoveredFault as fault:
            logger.critical(
                "Unrecovered fault in %s %s: %s - terminating process",
                scope.get("method"),
                scope.get("path"),
                fault,
            )
            os._exit(UNRECOVERED_EXIT_CODE)
            raise
