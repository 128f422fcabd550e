"""Exception hierarchy for error-relay.

All project-specific exceptions derive from ErrorRelayError so callers can
catch the whole family with a single clause.
"""


class ErrorRelayError(Exception):
    """Base exception for error-relay."""


class ConfigError(ErrorRelayError):
    """Configuration is missing or invalid."""


class BotStateError(ErrorRelayError):
    """Illegal LoadGeneratorBot lifecycle transition (e.g. starting twice)."""
