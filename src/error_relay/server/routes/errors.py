"""Error simulation route handlers.

Each handler calls a simulated service that always fails, then raises the
failure wrapped with context and metadata. The recovery middleware turns it
into an ErrorEvent and a JSON error response carrying the error ID.
"""

import logging

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from error_relay.tracker.events import TrackedError

logger = logging.getLogger(__name__)


def _services(request: Request):
    return request.app.state.services


async def database_error(request: Request) -> JSONResponse:
    """GET /api/error/database - Database connection timeout."""
    try:
        _services(request).database.connect()
    except ConnectionError as e:
        raise TrackedError(
            e,
            "failed to connect to PostgreSQL",
            {
                "database": "postgres",
                "host": "db.example.com",
                "port": 5432,
                "timeout": "30s",
            },
        ) from e
    return JSONResponse({"message": "database connected"})


async def validation_error(request: Request) -> JSONResponse:
    """GET /api/error/validation - User registration with an invalid email."""
    email = "not-an-email"
    username = "john.doe"
    try:
        _services(request).users.register_user(email, username)
    except ValueError as e:
        raise TrackedError(
            e,
            "user registration validation failed",
            {
                "field": "email",
                "provided_value": email,
                "expected": "valid email format",
                "username": username,
            },
        ) from e
    return JSONResponse({"message": "user registered"})


async def network_error(request: Request) -> JSONResponse:
    """GET /api/error/network - Payment gateway refuses the connection."""
    try:
        await _services(request).external_api.call_stripe_api("/v1/charges")
    except ConnectionError as e:
        raise TrackedError(
            e,
            "failed to call payment gateway API",
            {
                "api": "stripe",
                "endpoint": "https://api.stripe.com/v1/charges",
                "method": "POST",
                "timeout": "10s",
            },
        ) from e
    return JSONResponse({"message": "API call successful"})


async def auth_error(request: Request) -> JSONResponse:
    """GET /api/error/auth - Bad credentials."""
    username = "john.doe"
    try:
        _services(request).auth.authenticate_user(username, "wrong")
    except PermissionError as e:
        raise TrackedError(
            e,
            "user authentication failed",
            {
                "username": username,
                "ip_address": request.client.host if request.client else "",
                "user_agent": request.headers.get("user-agent", ""),
                "attempts": 3,
            },
        ) from e
    return JSONResponse({"message": "authentication successful"})


async def payment_error(request: Request) -> JSONResponse:
    """GET /api/error/payment - Insufficient funds."""
    user_id = 12345
    amount = 150.00
    card_last4 = "4242"
    try:
        _services(request).payments.process_payment(user_id, amount, card_last4)
    except RuntimeError as e:
        raise TrackedError(
            e,
            "payment processing failed",
            {
                "user_id": user_id,
                "amount": amount,
                "currency": "USD",
                "card_last4": card_last4,
                "merchant_id": "merchant_abc123",
            },
        ) from e
    return JSONResponse({"message": "payment successful"})


async def panic_error(request: Request) -> JSONResponse:
    """GET /api/error/panic - Unexpected fault caught by the recovery middleware."""
    result = _services(request).dangerous.process_array([])
    return JSONResponse({"result": result})


async def uncaught_panic(request: Request) -> JSONResponse:
    """GET /api/error/uncaught-panic - Fault with no recovery; terminates the process."""
    logger.warning("Triggering unrecovered fault, the process will exit")
    _services(request).dangerous.uncaught_fault_operation()
    return JSONResponse({"message": "success"})


routes = [
    Route("/api/error/database", database_error, methods=["GET"]),
    Route("/api/error/validation", validation_error, methods=["GET"]),
    Route("/api/error/network", network_error, methods=["GET"]),
    Route("/api/error/auth", auth_error, methods=["GET"]),
    Route("/api/error/payment", payment_error, methods=["GET"]),
    Route("/api/error/panic", panic_error, methods=["GET"]),
    Route("/api/error/uncaught-panic", uncaught_panic, methods=["GET"]),
]
