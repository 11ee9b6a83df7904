"""Knowledge store: tables, database access and read model.

The lifecycle handle lives in mismokb.store.knowledge, which depends on the
ingest package and is therefore not re-exported here.
"""

from mismokb.store.database import BulkWriter, Database
from mismokb.store.indexes import create_additional_indexes
from mismokb.store.models import (
    EnumOrigin,
    Enumeration,
    EnumValue,
    IngestState,
    Relationship,
    RelationshipType,
    SchemaClass,
    SchemaProperty,
)
from mismokb.store.queries import EdgeRow, EnumRow, FieldRow, SchemaQueries

__all__ = [
    "Database",
    "BulkWriter",
    "create_additional_indexes",
    "SchemaClass",
    "SchemaProperty",
    "Enumeration",
    "EnumValue",
    "EnumOrigin",
    "Relationship",
    "RelationshipType",
    "IngestState",
    "SchemaQueries",
    "FieldRow",
    "EnumRow",
    "EdgeRow",
]
