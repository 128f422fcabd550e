"""Core module for error-relay configuration and utilities.

This module provides:
- Configuration model built from environment variables
- Custom exception hierarchy with ErrorRelayError as base
- Time helpers and background task registry
"""

from error_relay.core.config import (
    DEFAULT_BOT_INTERVAL,
    DEFAULT_ENVIRONMENT,
    DEFAULT_PORT,
    ENV_FILE_NAME,
    Settings,
    load_env_file,
    mask_webhook_url,
)
from error_relay.core.exceptions import (
    BotStateError,
    ConfigError,
    ErrorRelayError,
)
from error_relay.core.tasks import drain_background_tasks, spawn_background

__all__ = [
    # Config
    "DEFAULT_BOT_INTERVAL",
    "DEFAULT_ENVIRONMENT",
    "DEFAULT_PORT",
    "ENV_FILE_NAME",
    "Settings",
    "load_env_file",
    "mask_webhook_url",
    # Exceptions
    "BotStateError",
    "ConfigError",
    "ErrorRelayError",
    # Background tasks
    "drain_background_tasks",
    "spawn_background",
]
