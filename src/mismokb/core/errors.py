"""mismokb error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Ingest
- 9xxx: Internal

Query-time conditions (unknown field, unknown enumeration, validation
findings, unmatched narrative text) are not errors. They are returned as
data by the query engine and the mappers.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Ingest (3xxx)
    SCHEMA_CONTAINER_MISSING = 3001
    SCHEMA_PARSE_ERROR = 3002
    SCHEMA_FILE_NOT_FOUND = 3003
    SCHEMA_DUPLICATE_ID = 3004

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True)
class MismoKBError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'SCHEMA_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(MismoKBError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class IngestError(MismoKBError):
    """Structural failures while ingesting a schema tree.

    Always fatal: the ingest transaction is rolled back before the error
    reaches the caller.
    """

    @classmethod
    def container_missing(cls, path: str, container: str) -> "IngestError":
        return cls(
            code=ErrorCode.SCHEMA_CONTAINER_MISSING,
            message=f"'{container}' package not found in {path}",
            details={"path": path, "container": container},
        )

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "IngestError":
        return cls(
            code=ErrorCode.SCHEMA_PARSE_ERROR,
            message=f"Failed to parse schema at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "IngestError":
        return cls(
            code=ErrorCode.SCHEMA_FILE_NOT_FOUND,
            message=f"Schema file not found: {path}",
            details={"path": path},
        )

    @classmethod
    def duplicate_id(cls, xmi_id: str, first: str, second: str) -> "IngestError":
        return cls(
            code=ErrorCode.SCHEMA_DUPLICATE_ID,
            message=f"Identifier '{xmi_id}' declared by both '{first}' and '{second}'",
            details={"xmi_id": xmi_id, "first": first, "second": second},
        )


class InternalError(MismoKBError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
