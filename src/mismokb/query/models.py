"""Query result models.

Every result is a dataclass whose to_dict() gives the camelCase wire shape.
Not-found conditions are carried in an ``error`` field, never raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class IssueKind(str, Enum):
    """Validation finding type."""

    UNKNOWN_FIELD = "unknown_field"
    INVALID_ENUM_VALUE = "invalid_enum_value"
    REQUIRED_EMPTY = "required_empty"


@dataclass
class FeatureField:
    """A field matched by a feature search."""

    class_name: str
    field_name: str
    field_path: str
    data_type: str
    required: bool
    enum_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "className": self.class_name,
            "fieldName": self.field_name,
            "fieldPath": self.field_path,
            "dataType": self.data_type,
            "required": self.required,
        }
        if self.enum_type is not None:
            result["enumType"] = self.enum_type
        return result


@dataclass
class FeatureResult:
    feature: str
    fields: list[FeatureField] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"feature": self.feature, "fields": [f.to_dict() for f in self.fields]}


@dataclass
class EnumValueInfo:
    value: str
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "description": self.description}


@dataclass
class FieldInfo:
    """Detail for one canonical field, or a not-found marker."""

    field_path: str
    class_name: str = ""
    class_description: str = ""
    property_name: str = ""
    property_description: str = ""
    data_type: str = ""
    required: bool = False
    min_occurs: int = 0
    max_occurs: int = 1
    enum_type: str | None = None
    enum_values: list[EnumValueInfo] | None = None
    error: str | None = None

    @property
    def found(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"fieldPath": self.field_path, "error": self.error}
        result: dict[str, Any] = {
            "fieldPath": self.field_path,
            "className": self.class_name,
            "classDescription": self.class_description,
            "propertyName": self.property_name,
            "propertyDescription": self.property_description,
            "dataType": self.data_type,
            "required": self.required,
            "minOccurs": self.min_occurs,
            "maxOccurs": self.max_occurs,
        }
        if self.enum_type is not None:
            result["enumType"] = self.enum_type
            result["enumValues"] = [v.to_dict() for v in self.enum_values or []]
        return result


@dataclass
class EnumInfo:
    """An enumeration with its values, or a not-found marker."""

    enum_type: str
    description: str = ""
    values: list[EnumValueInfo] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "enumType": self.enum_type,
            "description": self.description,
            "values": [v.to_dict() for v in self.values],
        }
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class RequiredField:
    field_path: str
    class_name: str
    property_name: str
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "fieldPath": self.field_path,
            "className": self.class_name,
            "propertyName": self.property_name,
            "description": self.description,
        }


@dataclass
class RequiredFieldsResult:
    entity_type: str
    use_case: str
    required_fields: list[RequiredField] = field(default_factory=list)

    @property
    def required(self) -> list[str]:
        return [f.field_path for f in self.required_fields]

    def to_dict(self) -> dict[str, Any]:
        return {
            "entityType": self.entity_type,
            "useCase": self.use_case,
            "required": self.required,
            "requiredFields": [f.to_dict() for f in self.required_fields],
        }


@dataclass
class ValidationIssue:
    """One finding for one record key."""

    field: str
    kind: IssueKind
    message: str
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "type": self.kind.value,
            "message": self.message,
            "value": self.value,
        }


@dataclass
class ValidationResult:
    """Attribute-level findings; valid iff there are no errors."""

    context: str
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "context": self.context,
        }


@dataclass
class RelationshipEdgeInfo:
    source: str
    target: str
    type: str
    name: str

    def to_dict(self) -> dict[str, Any]:
        return {"source": self.source, "target": self.target, "type": self.type, "name": self.name}


@dataclass
class RelationshipsResult:
    entity: str
    related_entities: list[str] = field(default_factory=list)
    edges: list[RelationshipEdgeInfo] = field(default_factory=list)

    @property
    def description(self) -> str:
        return f"Entities related to {self.entity}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity": self.entity,
            "relatedEntities": list(self.related_entities),
            "description": self.description,
            "edges": [e.to_dict() for e in self.edges],
        }
