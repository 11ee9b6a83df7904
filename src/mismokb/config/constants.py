"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
These are storage format and schema-dialect details.

For configurable values, see models.py (IngestConfig, LegacyConfig, etc.).
"""

# =============================================================================
# Store Format
# =============================================================================

STORE_FORMAT_VERSION = 1
"""Bump when table layout or ingest semantics change; a stored marker with a
different version forces a rebuild."""

MARKER_ROW_ID = 1
"""Primary key of the singleton ingest_state row."""

# =============================================================================
# Schema Dialect
# =============================================================================

UNBOUNDED = -1
"""max_occurs sentinel for an upper bound of '*'."""

UNBOUNDED_TOKENS = frozenset({"*", "-1"})
"""Upper-bound tokens that mean 'many'."""

DEFAULT_TYPE_NAME = "string"
"""Type name recorded when a property's type reference cannot be resolved."""

DEFAULT_TOP_CONTAINER = "Logical Data Model"
"""Name of the top-level package holding the data dictionary."""

DEFAULT_ENUM_SUFFIX = "Enum"
"""Class-name suffix that marks a class as an enumeration."""
