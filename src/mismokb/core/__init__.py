"""Core module exports."""

from mismokb.core.errors import (
    ConfigError,
    ErrorCode,
    IngestError,
    InternalError,
    MismoKBError,
)
from mismokb.core.logging import configure_logging, get_logger
from mismokb.core.progress import spinner, status

__all__ = [
    # Errors
    "MismoKBError",
    "ConfigError",
    "ErrorCode",
    "IngestError",
    "InternalError",
    # Logging
    "configure_logging",
    "get_logger",
    # Progress
    "spinner",
    "status",
]
