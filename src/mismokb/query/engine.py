"""Query engine over an ingested knowledge store.

Stateless read operations. Nothing here raises for a missing field or
enumeration: lookups that find nothing come back as results carrying an
``error`` string, so callers (the validator included) treat them as data.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog

from mismokb.mapping.legacy import LegacyConversion, LegacyFieldMapper, LegacySuggestion
from mismokb.mapping.narrative import NarrativeExtractor, NarrativeResult
from mismokb.query.catalog import RELATED_ENTITIES, REQUIRED_FIELDS, feature_mapping
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

if TYPE_CHECKING:
    from mismokb.config.models import MismoKBConfig
    from mismokb.store.knowledge import KnowledgeStore
    from mismokb.store.queries import EnumRow, FieldRow

logger = structlog.get_logger()


def split_path(path: str) -> tuple[str, str] | None:
    """'Class.Property' -> (class, property), split on the first dot."""
    class_name, sep, property_name = path.partition(".")
    if not sep or not class_name or not property_name:
        return None
    return class_name, property_name


def is_empty_value(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class QueryEngine:
    """Read-side operations on the data dictionary.

    Usage::

        engine = QueryEngine(store)
        engine.field_info("Property.YearBuilt").to_dict()
    """

    def __init__(
        self,
        store: KnowledgeStore,
        *,
        narrative: NarrativeExtractor | None = None,
        legacy: LegacyFieldMapper | None = None,
    ) -> None:
        self._store = store
        self._queries = store.queries
        self.narrative = narrative or NarrativeExtractor()
        self.legacy = legacy or LegacyFieldMapper()

    @classmethod
    def from_config(cls, store: KnowledgeStore, config: MismoKBConfig) -> QueryEngine:
        return cls(
            store,
            narrative=NarrativeExtractor.from_config(config.narrative),
            legacy=LegacyFieldMapper.from_config(config.legacy),
        )

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _get_field(self, path: str) -> FieldRow | None:
        parts = split_path(path)
        if parts is None:
            return None
        return self._queries.get_field(*parts)

    def fields_for_feature(self, feature: str) -> FeatureResult:
        """Fields related to a coarse feature word, deduplicated by path."""
        result = FeatureResult(feature=feature)
        mapping = feature_mapping(feature)
        if not mapping.classes and not mapping.keywords:
            return result

        seen: set[str] = set()
        for row in self._queries.search_fields(mapping.classes, mapping.keywords):
            if row.path in seen:
                continue
            seen.add(row.path)
            result.fields.append(
                FeatureField(
                    class_name=row.class_name,
                    field_name=row.property_name,
                    field_path=row.path,
                    data_type=row.type_name,
                    required=row.is_required,
                    enum_type=row.enum_name,
                )
            )
        return result

    def field_info(self, path: str) -> FieldInfo:
        row = self._get_field(path)
        if row is None:
            logger.debug("field_not_found", path=path)
            return FieldInfo(field_path=path, error=f"Field not found: {path}")

        info = FieldInfo(
            field_path=path,
            class_name=row.class_name,
            class_description=row.class_description,
            property_name=row.property_name,
            property_description=row.property_description,
            data_type=row.type_name,
            required=row.is_required,
            min_occurs=row.min_occurs,
            max_occurs=row.max_occurs,
        )
        if row.enum_id is not None:
            enum = self._queries.get_enumeration_by_id(row.enum_id)
            if enum is not None:
                info.enum_type = enum.name
                info.enum_values = [EnumValueInfo(v, d) for v, d in enum.values]
        return info

    def enum_values(self, name: str) -> EnumInfo:
        enum = self._queries.get_enumeration(name)
        if enum is None:
            logger.debug("enumeration_not_found", name=name)
            return EnumInfo(enum_type=name, error=f"Enumeration not found: {name}")
        return EnumInfo(
            enum_type=enum.name,
            description=enum.description,
            values=[EnumValueInfo(v, d) for v, d in enum.values],
        )

    def required_fields(self, entity_type: str, use_case: str) -> RequiredFieldsResult:
        """Static checklist for an (entity type, use case) pair."""
        result = RequiredFieldsResult(entity_type=entity_type, use_case=use_case)
        for path in REQUIRED_FIELDS.get((entity_type, use_case), ()):
            class_name, _, property_name = path.partition(".")
            result.required_fields.append(
                RequiredField(
                    field_path=path,
                    class_name=class_name,
                    property_name=property_name,
                    description=f"Required for {use_case} of {entity_type}",
                )
            )
        return result

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(
        self,
        record: Mapping[str, Any],
        context: str = "general",
        *,
        translate_legacy: bool = False,
    ) -> ValidationResult:
        """Attribute-level checks: known field, enum membership, required non-empty.

        With translate_legacy, keys that are not canonical paths are first
        mapped through the legacy mapper when it is confident.
        """
        result = ValidationResult(context=context)
        enums: dict[int, EnumRow | None] = {}

        for key, value in record.items():
            path = str(key)
            row = self._get_field(path)
            if row is None and translate_legacy:
                suggestion = self.legacy.suggest(path)
                if (
                    suggestion.suggested_mapping is not None
                    and suggestion.confidence > self.legacy.min_confidence
                ):
                    path = suggestion.suggested_mapping
                    row = self._get_field(path)

            if row is None:
                result.warnings.append(
                    ValidationIssue(
                        field=path,
                        kind=IssueKind.UNKNOWN_FIELD,
                        message=f"Unknown field: {path}",
                        value=value,
                    )
                )
                continue

            if is_empty_value(value):
                if row.is_required:
                    result.errors.append(
                        ValidationIssue(
                            field=path,
                            kind=IssueKind.REQUIRED_EMPTY,
                            message=f"Required field is empty: {path}",
                            value=value,
                        )
                    )
                continue

            if row.enum_id is None:
                continue
            if row.enum_id not in enums:
                enums[row.enum_id] = self._queries.get_enumeration_by_id(row.enum_id)
            enum = enums[row.enum_id]
            if enum is None:
                continue
            allowed = {v for v, _ in enum.values}
            if str(value) not in allowed:
                result.errors.append(
                    ValidationIssue(
                        field=path,
                        kind=IssueKind.INVALID_ENUM_VALUE,
                        message=f"Invalid value '{value}' for {path}; expected a {enum.name} value",
                        value=value,
                    )
                )

        logger.debug(
            "record_validated",
            context=context,
            errors=len(result.errors),
            warnings=len(result.warnings),
        )
        return result

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------

    def relationships(self, entity: str) -> RelationshipsResult:
        """Curated adjacency plus the ingested edges touching entity."""
        result = RelationshipsResult(
            entity=entity,
            related_entities=list(RELATED_ENTITIES.get(entity, ())),
        )
        seen: set[tuple[str, str, str, str]] = set()
        for edge in self._queries.relationships_from(entity) + self._queries.relationships_to(entity):
            key = (edge.source, edge.target, edge.relationship_type, edge.name)
            if key in seen:
                continue
            seen.add(key)
            result.edges.append(
                RelationshipEdgeInfo(
                    source=edge.source,
                    target=edge.target,
                    type=edge.relationship_type,
                    name=edge.name,
                )
            )
        return result

    # -------------------------------------------------------------------------
    # Mapping
    # -------------------------------------------------------------------------

    def map_narrative(self, text: object) -> NarrativeResult:
        return self.narrative.parse(text)

    def suggest_legacy_mapping(self, legacy_name: str) -> LegacySuggestion:
        return self.legacy.suggest(legacy_name)

    def convert_legacy(self, record: Mapping[Any, Any]) -> LegacyConversion:
        return self.legacy.convert(record)
