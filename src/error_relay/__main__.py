"""Allow ``python -m error_relay``."""

from error_relay.cli import app

app()
