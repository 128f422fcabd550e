"""Error event model flowing through the notification pipeline.

An ErrorEvent is created by the tracker once per failure, handed to the
dispatcher and every sink, then discarded. It is frozen so concurrent sink
deliveries can share one instance safely.

Example:
    >>> event = ErrorEvent(
    ...     id="ERR-20250101-1A2B3C4D",
    ...     original=TimeoutError("connection to database timed out after 30s"),
    ...     context="failed to connect to PostgreSQL",
    ...     details={"database": "postgres", "port": 5432},
    ... )
    >>> event.message
    'connection to database timed out after 30s'

"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from error_relay.core.timing import utc_now


def describe_error(err: BaseException) -> str:
    """Render an exception message including its cause chain.

    Causes whose text already appears in the outer message are not repeated,
    so ``ValueError("validation failed: bad email")`` raised from
    ``ValueError("bad email")`` renders once.

    Args:
        err: Exception to describe.

    Returns:
        Message like "validation failed: email format is invalid". Falls back
        to the exception class name when the message is empty.

    """
    message = str(err) or type(err).__name__
    seen = {id(err)}
    cause = err.__cause__
    while cause is not None and id(cause) not in seen:
        seen.add(id(cause))
        text = str(cause) or type(cause).__name__
        if text not in message:
            message = f"{message}: {text}"
        cause = cause.__cause__
    return message


class ErrorEvent(BaseModel):
    """Structured record for one tracked failure.

    Attributes:
        id: Identifier assigned by the tracker, unique per occurrence.
        original: The underlying exception being reported.
        context: Short description of the operation that failed.
        details: Optional metadata; empty means "omit".
        stack_trace: Optional raw stack trace text.
        environment: Deployment label stamped by the tracker or dispatcher.
        timestamp: UTC time the event was created.

    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str = Field(min_length=1)
    original: BaseException
    context: str = Field(min_length=1)
    details: dict[str, Any] = Field(default_factory=dict)
    stack_trace: str | None = None
    environment: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)

    @property
    def message(self) -> str:
        """Error message text including the cause chain."""
        return describe_error(self.original)


class TrackedError(Exception):
    """Domain failure wrapped with context and metadata.

    Raised by request handlers; the recovery boundary converts it into an
    ErrorEvent and an HTTP error response.

    Attributes:
        original: The wrapped exception.
        context: Description of the failed operation.
        details: Metadata to attach to the event.
        status_code: HTTP status returned to the caller.

    """

    def __init__(
        self,
        original: BaseException,
        context: str,
        details: dict[str, Any] | None = None,
        status_code: int = 500,
    ) -> None:
        super().__init__(f"{context}: {describe_error(original)}")
        self.original = original
        self.context = context
        self.details = dict(details or {})
        self.status_code = status_code
        self.__cause__ = original


class UnrecoveredFault(BaseException):
    """Fault that deliberately bypasses the recovery boundary.

    Derives from BaseException so ``except Exception`` handlers, including
    the recovery middleware, do not intercept it. Reaching the outermost
    boundary terminates the process.
    """
