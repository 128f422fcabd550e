"""HTTP service for error-relay.

Public API:
    ErrorRelayServer: Main HTTP server class
    Services: Simulated domain services container
    start_server: Convenience function to start the server
"""

from error_relay.server.server import ErrorRelayServer, Services, start_server

__all__ = ["ErrorRelayServer", "Services", "start_server"]
