"""error-relay - error-event notification pipeline with chat and log sinks."""

from importlib.metadata import version

try:
    __version__ = version("error-relay")
except Exception:
    __version__ = "0.0.0-dev"

SERVICE_NAME = "error-relay"
