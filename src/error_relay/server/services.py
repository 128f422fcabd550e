"""Simulated domain services.

Each service stands in for a real dependency and fails deterministically,
giving the error endpoints something realistic to report.
"""

from __future__ import annotations

import asyncio

from error_relay.tracker.events import UnrecoveredFault

NETWORK_DELAY = 0.1


class DatabaseConnectionError(ConnectionError):
    """Database could not be reached."""


class ValidationError(ValueError):
    """Input failed validation."""


class AuthenticationError(PermissionError):
    """Credentials were rejected."""


class PaymentError(RuntimeError):
    """Payment could not be processed."""


class DatabaseService:
    def connect(self) -> None:
        raise DatabaseConnectionError("connection to database timed out after 30s")


class UserService:
    def validate_email(self, email: str) -> None:
        if not email or email == "not-an-email":
            raise ValidationError("email format is invalid")

    def register_user(self, email: str, username: str) -> None:
        try:
            self.validate_email(email)
        except ValidationError as e:
            raise ValidationError("validation failed") from e


class PaymentService:
    def process_payment(self, user_id: int, amount: float, card_last4: str) -> None:
        if amount > 100:
            raise PaymentError("insufficient funds")


class ExternalAPIService:
    async def call_stripe_api(self, endpoint: str) -> None:
        await asyncio.sleep(NETWORK_DELAY)
        raise ConnectionRefusedError("connection refused")


class AuthService:
    def authenticate_user(self, username: str, password: str) -> None:
        if username == "john.doe" and password == "wrong":
            raise AuthenticationError("invalid credentials")


class DangerousService:
    """Operations that fault instead of returning an error."""

    def process_array(self, data: list[str]) -> str:
        # IndexError on empty input, caught by the recovery boundary
        return data[0]

    def uncaught_fault_operation(self) -> None:
        raise UnrecoveredFault("invalid memory address or nil pointer dereference")
