"""Query engine and its result models."""

from mismokb.query.catalog import (
    FEATURE_VOCABULARY,
    RELATED_ENTITIES,
    REQUIRED_FIELDS,
    FeatureMapping,
    feature_mapping,
)
from mismokb.query.engine import QueryEngine, split_path
from mismokb.query.models import (
    EnumInfo,
    EnumValueInfo,
    FeatureField,
    FeatureResult,
    FieldInfo,
    IssueKind,
    RelationshipEdgeInfo,
    RelationshipsResult,
    RequiredField,
    RequiredFieldsResult,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "QueryEngine",
    "split_path",
    "FEATURE_VOCABULARY",
    "RELATED_ENTITIES",
    "REQUIRED_FIELDS",
    "FeatureMapping",
    "feature_mapping",
    "EnumInfo",
    "EnumValueInfo",
    "FeatureField",
    "FeatureResult",
    "FieldInfo",
    "IssueKind",
    "RelationshipEdgeInfo",
    "RelationshipsResult",
    "RequiredField",
    "RequiredFieldsResult",
    "ValidationIssue",
    "ValidationResult",
]
