"""Environment-driven configuration for error-relay.

Settings are read once at startup into an immutable pydantic model and passed
explicitly to the tracker, dispatcher, sinks and bot. Nothing reads the
environment after construction.

Recognized variables:
    DISCORD_WEBHOOK_URL  Chat webhook target (unset -> chat sink skips)
    ELK_URL              Log-ingestion target (unset -> log sink skips network)
    ELK_USERNAME         Basic-auth username for log ingestion
    ELK_PASSWORD         Basic-auth password for log ingestion
    ENVIRONMENT          Deployment label (default "development")
    BOT_INTERVAL         Go-style duration between bot ticks (default "30s")
    BOT_ENABLED          Start the load generator bot (default true)
    PORT                 Listen port (default 8080)
    INCLUDE_STACK_TRACE  Capture stack traces on events (default true)
    ASYNC_DELIVERY       Deliver to sinks without blocking the request (default true)

Example:
    >>> load_env_file()
    >>> settings = Settings.from_env()
    >>> settings.port
    8080

"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from error_relay.core.exceptions import ConfigError
from error_relay.core.timing import parse_duration

logger = logging.getLogger(__name__)

ENV_FILE_NAME = ".env"
DEFAULT_BOT_INTERVAL = 30.0
DEFAULT_ENVIRONMENT = "development"
DEFAULT_PORT = 8080

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


class Settings(BaseModel):
    """Process-wide configuration, constructed once at startup.

    Attributes:
        discord_webhook_url: Chat webhook URL, or None when not configured.
        elk_url: Log-ingestion URL, or None when not configured.
        elk_username: Basic-auth username for log ingestion.
        elk_password: Basic-auth password for log ingestion.
        environment: Deployment environment label stamped on events.
        bot_interval: Seconds between load generator ticks.
        bot_enabled: Whether the server starts the load generator bot.
        port: HTTP listen port.
        include_stack_trace: Whether events carry a stack trace.
        async_delivery: Whether sink delivery runs off the request path.

    """

    model_config = ConfigDict(frozen=True)

    discord_webhook_url: str | None = None
    elk_url: str | None = None
    elk_username: str | None = None
    elk_password: str | None = None
    environment: str = DEFAULT_ENVIRONMENT
    bot_interval: float = Field(default=DEFAULT_BOT_INTERVAL, gt=0)
    bot_enabled: bool = True
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    include_stack_trace: bool = True
    async_delivery: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from, defaults to os.environ.

        Returns:
            Validated Settings instance.

        Raises:
            ConfigError: If PORT or a boolean flag has an invalid value.

        """
        env = os.environ if environ is None else environ

        try:
            return cls(
                discord_webhook_url=_optional(env, "DISCORD_WEBHOOK_URL"),
                elk_url=_optional(env, "ELK_URL"),
                elk_username=_optional(env, "ELK_USERNAME"),
                elk_password=_optional(env, "ELK_PASSWORD"),
                environment=_optional(env, "ENVIRONMENT") or DEFAULT_ENVIRONMENT,
                bot_interval=_bot_interval(env.get("BOT_INTERVAL")),
                bot_enabled=_flag(env, "BOT_ENABLED", True),
                port=_port(env.get("PORT")),
                include_stack_trace=_flag(env, "INCLUDE_STACK_TRACE", True),
                async_delivery=_flag(env, "ASYNC_DELIVERY", True),
            )
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


def load_env_file(project_path: str | Path | None = None) -> bool:
    """Load .env file into os.environ without overriding existing variables.

    Args:
        project_path: Directory containing .env (or the file itself),
            defaults to current working directory.

    Returns:
        True if a .env file was found and loaded, False otherwise.

    """
    base = Path(project_path).expanduser() if project_path is not None else Path.cwd()
    env_path = base if base.name == ENV_FILE_NAME or base.is_file() else base / ENV_FILE_NAME

    if not env_path.is_file():
        logger.debug("No env file at %s", env_path)
        return False

    load_dotenv(env_path, override=False)
    logger.debug("Loaded environment from %s", env_path)
    return True


def mask_webhook_url(url: str | None) -> str:
    """Shorten webhook URL for display so the token is not printed whole.

    Args:
        url: Webhook URL or None.

    Returns:
        "not configured", the URL itself if short, or first 50 chars + "...".

    """
    if not url:
        return "not configured"
    if len(url) > 50:
        return url[:50] + "..."
    return url


def _optional(env: Mapping[str, str], key: str) -> str | None:
    value = env.get(key, "").strip()
    return value or None


def _flag(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigError(f"{key} must be a boolean, got {raw!r}")


def _bot_interval(raw: str | None) -> float:
    """Parse BOT_INTERVAL, falling back to the default on bad input."""
    if raw is None or not raw.strip():
        return DEFAULT_BOT_INTERVAL
    try:
        seconds = parse_duration(raw)
    except ValueError:
        logger.warning("Invalid BOT_INTERVAL %r, using default %.0fs", raw, DEFAULT_BOT_INTERVAL)
        return DEFAULT_BOT_INTERVAL
    if seconds <= 0:
        logger.warning(
            "BOT_INTERVAL must be positive, got %r; using default %.0fs",
            raw,
            DEFAULT_BOT_INTERVAL,
        )
        return DEFAULT_BOT_INTERVAL
    return seconds


def _port(raw: str | None) -> int:
    if raw is None or not raw.strip():
        return DEFAULT_PORT
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"PORT must be an integer, got {raw!r}") from None
