"""Health check route."""

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from error_relay import SERVICE_NAME


async def health_check(request: Request) -> JSONResponse:
    """GET /health - Liveness probe, never errors."""
    return JSONResponse({"status": "healthy", "service": SERVICE_NAME})


routes = [
    Route("/health", health_check, methods=["GET"]),
]
