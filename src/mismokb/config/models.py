"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (MISMOKB__SECTION__KEY)
3. Project YAML (.mismokb/config.yaml)
4. Global YAML (~/.config/mismokb/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    MISMOKB__<SECTION>__<KEY>=<VALUE>

Examples:
    MISMOKB__LOGGING__LEVEL=DEBUG
    MISMOKB__STORE__DB_PATH=/var/lib/mismokb/mismo.db
    MISMOKB__INGEST__TOP_CONTAINER="Logical Data Model"
    MISMOKB__LEGACY__MIN_CONFIDENCE=0.6
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from mismokb.config.constants import DEFAULT_ENUM_SUFFIX, DEFAULT_TOP_CONTAINER

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        MISMOKB__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every not-found lookup.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class StoreConfig(BaseModel):
    """Knowledge store location.

    Env vars:
        MISMOKB__STORE__DB_PATH: SQLite file holding the normalized dictionary
        MISMOKB__STORE__SOURCE_PATH: Default XMI file to ingest
    """

    db_path: str = Field(
        default=".mismokb/mismo.db",
        description="SQLite file for the knowledge store. Relative paths resolve "
        "against the project root.",
    )
    source_path: str | None = Field(
        default=None,
        description="XMI export of the data dictionary used when no source is given.",
    )


class IngestConfig(BaseModel):
    """Schema ingestion configuration.

    Env vars:
        MISMOKB__INGEST__TOP_CONTAINER: Top-level package to ingest
        MISMOKB__INGEST__ENUM_SUFFIX: Class-name suffix promoted to enumeration
    """

    top_container: str = Field(
        default=DEFAULT_TOP_CONTAINER,
        description="Name of the top-level package under the UML model. "
        "Ingestion fails if it is missing.",
    )
    enum_suffix: str = Field(
        default=DEFAULT_ENUM_SUFFIX,
        description="Classes whose name ends with this suffix are treated as "
        "enumerations. Empty string disables the heuristic.",
    )


class DatabaseConfig(BaseModel):
    """Database connection configuration.

    Env vars:
        MISMOKB__DATABASE__BUSY_TIMEOUT_MS: SQLite busy timeout
        MISMOKB__DATABASE__MAX_RETRIES: Max retry attempts for locked DB
    """

    busy_timeout_ms: int = Field(
        default=30000,
        description="SQLite busy timeout (ms). How long to wait for locks.",
    )
    max_retries: int = Field(
        default=3,
        description="Max retry attempts for locked database errors.",
    )
    retry_base_delay_sec: float = Field(
        default=0.1,
        description="Base delay between retries (exponential backoff).",
    )


class NarrativeConfig(BaseModel):
    """Narrative extraction configuration.

    Env vars:
        MISMOKB__NARRATIVE__MIN_UNMATCHED_LENGTH: Shortest segment reported as unmatched
    """

    min_unmatched_length: int = Field(
        default=20,
        description="Segments at or below this length are never reported as unmatched.",
    )


class LegacyConfig(BaseModel):
    """Legacy field mapping configuration.

    Env vars:
        MISMOKB__LEGACY__MIN_CONFIDENCE: Conversions at or below this are unmapped
    """

    exact_confidence: float = Field(default=0.9, ge=0.0, le=1.0)
    fuzzy_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    min_confidence: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="convert_legacy routes mappings with confidence <= this to unmapped.",
    )

    @model_validator(mode="after")
    def validate_ordering(self) -> "LegacyConfig":
        if self.fuzzy_confidence > self.exact_confidence:
            raise ValueError("fuzzy_confidence must not exceed exact_confidence")
        return self


class MismoKBConfig(BaseModel):
    """Root configuration for mismokb.

    All settings can be configured via:
    1. Environment variables: MISMOKB__SECTION__KEY
    2. YAML config files (project or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    ingest: IngestConfig = Field(default_factory=IngestConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    narrative: NarrativeConfig = Field(default_factory=NarrativeConfig)
    legacy: LegacyConfig = Field(default_factory=LegacyConfig)
