"""Schema ingestion: XMI tree loading and relational normalization."""

from mismokb.ingest.ingestor import PRIMITIVE_TYPES, IngestPlan, SchemaIngestor
from mismokb.ingest.models import (
    ClassNode,
    EnumerationNode,
    IngestStats,
    LiteralNode,
    PackageNode,
    PropertyNode,
    TypeEntry,
    TypeIndex,
    TypeKind,
)
from mismokb.ingest.xmi import load_schema_tree

__all__ = [
    "SchemaIngestor",
    "IngestPlan",
    "IngestStats",
    "PRIMITIVE_TYPES",
    "load_schema_tree",
    "PackageNode",
    "ClassNode",
    "PropertyNode",
    "EnumerationNode",
    "LiteralNode",
    "TypeEntry",
    "TypeIndex",
    "TypeKind",
]
