"""Config module exports."""

from mismokb.config.loader import load_config, resolve_db_path
from mismokb.config.models import (
    DatabaseConfig,
    IngestConfig,
    LegacyConfig,
    LoggingConfig,
    MismoKBConfig,
    NarrativeConfig,
    StoreConfig,
)

__all__ = [
    "load_config",
    "resolve_db_path",
    "MismoKBConfig",
    "DatabaseConfig",
    "IngestConfig",
    "LegacyConfig",
    "LoggingConfig",
    "NarrativeConfig",
    "StoreConfig",
]
