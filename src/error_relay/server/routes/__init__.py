"""API routes for the error-relay HTTP service.

Combines route modules into a single list for the Starlette application.
"""

from starlette.routing import BaseRoute

from error_relay.server.routes.errors import routes as error_routes
from error_relay.server.routes.health import routes as health_routes

API_ROUTES: list[BaseRoute] = [
    *health_routes,
    *error_routes,
]

__all__ = ["API_ROUTES"]
