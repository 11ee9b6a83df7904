"""Schema tree to relational normalization.

Two passes over the package tree:

1. Index: every class and enumeration gets its internal id and a TypeIndex
   entry, so forward references resolve no matter where they are declared.
2. Resolve: properties, generalizations and associations are turned into
   rows against the complete index.

All rows are then written through one BulkWriter, together with the
completion marker, so a failed ingestion leaves nothing behind.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from mismokb.config.constants import (
    DEFAULT_ENUM_SUFFIX,
    DEFAULT_TOP_CONTAINER,
    DEFAULT_TYPE_NAME,
    MARKER_ROW_ID,
    STORE_FORMAT_VERSION,
    UNBOUNDED,
    UNBOUNDED_TOKENS,
)
from mismokb.ingest.models import (
    ClassNode,
    IngestStats,
    LiteralNode,
    PackageNode,
    TypeEntry,
    TypeIndex,
    TypeKind,
)
from mismokb.ingest.xmi import load_schema_tree
from mismokb.store.models import (
    DELETE_ORDER,
    EnumOrigin,
    Enumeration,
    EnumValue,
    IngestState,
    Relationship,
    RelationshipType,
    SchemaClass,
    SchemaProperty,
)

if TYPE_CHECKING:
    from mismokb.store.database import BulkWriter

logger = structlog.get_logger()

PRIMITIVE_TYPES: dict[str, str] = {
    # Enterprise Architect Java primitives
    "EAJava_boolean": "boolean",
    "EAJava_int": "integer",
    "EAJava_long": "long",
    "EAJava_double": "double",
    "EAJava_float": "float",
    "EAJava_String": "string",
    "EAJava_Date": "date",
    "EAJava_BigDecimal": "decimal",
    # UML primitive types (href fragments)
    "String": "string",
    "Integer": "integer",
    "Boolean": "boolean",
    "Real": "double",
    "UnlimitedNatural": "integer",
}


def parse_lower(token: str | None) -> int:
    """Lower multiplicity bound; missing or non-numeric means 0."""
    if token is None:
        return 0
    try:
        return int(token.strip())
    except ValueError:
        return 0


def parse_upper(token: str | None) -> int:
    """Upper multiplicity bound; '*' and '-1' mean unbounded, default 1."""
    if token is None:
        return 1
    token = token.strip()
    if token in UNBOUNDED_TOKENS:
        return UNBOUNDED
    try:
        return int(token)
    except ValueError:
        return 1


@dataclass
class _PendingEnum:
    """An enumeration found in pass 1, written after its class row."""

    xmi_id: str
    name: str
    description: str
    class_id: int
    enum_id: int
    origin: EnumOrigin
    values: list[LiteralNode]


@dataclass
class IngestPlan:
    """Every row of one ingestion, ready for bulk insert."""

    classes: list[dict[str, Any]] = field(default_factory=list)
    parents: list[dict[str, Any]] = field(default_factory=list)
    enumerations: list[dict[str, Any]] = field(default_factory=list)
    enum_values: list[dict[str, Any]] = field(default_factory=list)
    properties: list[dict[str, Any]] = field(default_factory=list)
    relationships: list[dict[str, Any]] = field(default_factory=list)
    stats: IngestStats = field(default_factory=IngestStats)


class SchemaIngestor:
    """Normalizes an XMI schema tree into the knowledge store tables.

    Usage::

        ingestor = SchemaIngestor(top_container="Logical Data Model")
        with db.bulk_writer() as writer:
            stats = ingestor.ingest(writer, source, source_sha256=digest)
    """

    def __init__(
        self,
        top_container: str = DEFAULT_TOP_CONTAINER,
        enum_suffix: str = DEFAULT_ENUM_SUFFIX,
    ) -> None:
        self.top_container = top_container
        self.enum_suffix = enum_suffix

    def ingest(self, writer: BulkWriter, source: Path, *, source_sha256: str) -> IngestStats:
        """Replace the store contents with the schema in source.

        Runs inside the caller's transaction; any exception propagates and
        the caller rolls back.
        """
        start = time.monotonic()
        logger.info("ingest_started", source=str(source), container=self.top_container)

        root = load_schema_tree(source, self.top_container)
        plan = self.build(root)

        for model in DELETE_ORDER:
            writer.delete_all(model)

        writer.insert_many(SchemaClass, plan.classes)
        writer.update_many(SchemaClass, "id", plan.parents)
        writer.insert_many(Enumeration, plan.enumerations)
        writer.insert_many(EnumValue, plan.enum_values)
        writer.insert_many(SchemaProperty, plan.properties)
        writer.insert_many(Relationship, plan.relationships)

        # Marker counts are the rows this transaction holds, as check() compares them live
        stats = plan.stats
        writer.insert_many(
            IngestState,
            [
                {
                    "id": MARKER_ROW_ID,
                    "format_version": STORE_FORMAT_VERSION,
                    "source_path": str(source),
                    "source_sha256": source_sha256,
                    "class_count": writer.count(SchemaClass),
                    "property_count": writer.count(SchemaProperty),
                    "enumeration_count": writer.count(Enumeration),
                    "enum_value_count": writer.count(EnumValue),
                    "relationship_count": writer.count(Relationship),
                    "completed_at": time.time(),
                }
            ],
        )

        stats.duration_ms = int((time.monotonic() - start) * 1000)
        logger.info("ingest_completed", source=str(source), **stats.to_dict())
        return stats

    def build(self, root: PackageNode) -> IngestPlan:
        """Run both passes over a schema tree without touching the database."""
        plan = IngestPlan()
        packages = root.walk()
        index = TypeIndex()
        pending, owners = self._index(packages, index, plan)
        self._resolve(owners, index, plan)
        self._emit_enumerations(pending, plan)

        stats = plan.stats
        stats.classes = len(plan.classes)
        stats.enum_classes = sum(1 for row in plan.classes if row["is_enum"])
        stats.properties = len(plan.properties)
        stats.enumerations = len(plan.enumerations)
        stats.enum_values = len(plan.enum_values)
        stats.relationships = len(plan.relationships)
        return plan

    # -------------------------------------------------------------------------
    # Pass 1: index
    # -------------------------------------------------------------------------

    def _is_suffix_enum(self, node: ClassNode) -> bool:
        return bool(self.enum_suffix) and node.name.endswith(self.enum_suffix)

    def _index(
        self,
        packages: list[tuple[str, PackageNode]],
        index: TypeIndex,
        plan: IngestPlan,
    ) -> tuple[list[_PendingEnum], list[tuple[int, ClassNode]]]:
        """Assign ids and register every type.

        Returns the enumerations to emit and the (class_id, node) pairs of
        plain classes whose members still need resolving.
        """
        pending: list[_PendingEnum] = []
        owners: list[tuple[int, ClassNode]] = []
        explicit_by_name: dict[str, TypeEntry] = {}
        next_enum_id = 1

        def add_class_row(xmi_id: str, name: str, package: str, description: str, is_enum: bool) -> int:
            class_id = len(plan.classes) + 1
            plan.classes.append(
                {
                    "id": class_id,
                    "xmi_id": xmi_id or f"_anonymous_{class_id}",
                    "name": name,
                    "package": package,
                    "description": description,
                    "is_enum": is_enum,
                    "parent_id": None,
                }
            )
            return class_id

        # Explicit enumerations first so suffix classes can defer to them
        for package_path, package in packages:
            for enum_node in package.enumerations:
                class_id = add_class_row(
                    enum_node.xmi_id, enum_node.name, package_path, enum_node.description, True
                )
                enum_id: int | None = None
                if enum_node.literals:
                    enum_id = next_enum_id
                    next_enum_id += 1
                    pending.append(
                        _PendingEnum(
                            xmi_id=enum_node.xmi_id or f"_anonymous_{class_id}",
                            name=enum_node.name,
                            description=enum_node.description,
                            class_id=class_id,
                            enum_id=enum_id,
                            origin=EnumOrigin.EXPLICIT,
                            values=enum_node.literals,
                        )
                    )
                entry = TypeEntry(enum_node.name, class_id, TypeKind.ENUM, enum_id)
                if enum_node.xmi_id:
                    index.register(enum_node.xmi_id, entry)
                explicit_by_name.setdefault(enum_node.name, entry)

        for package_path, package in packages:
            for node in package.classes:
                is_enum = self._is_suffix_enum(node)
                class_id = add_class_row(node.xmi_id, node.name, package_path, node.description, is_enum)
                if not is_enum:
                    entry = TypeEntry(node.name, class_id, TypeKind.CLASS)
                    owners.append((class_id, node))
                elif node.name in explicit_by_name:
                    # Shadowed by an explicit enumeration of the same name
                    entry = explicit_by_name[node.name]
                else:
                    values = node.literals or [
                        LiteralNode(name=prop.name, description=prop.description)
                        for prop in node.properties
                        if prop.name
                    ]
                    enum_id = None
                    if values:
                        enum_id = next_enum_id
                        next_enum_id += 1
                        pending.append(
                            _PendingEnum(
                                xmi_id=node.xmi_id or f"_anonymous_{class_id}",
                                name=node.name,
                                description=node.description,
                                class_id=class_id,
                                enum_id=enum_id,
                                origin=EnumOrigin.SUFFIX,
                                values=values,
                            )
                        )
                    entry = TypeEntry(node.name, class_id, TypeKind.ENUM, enum_id)
                if node.xmi_id:
                    index.register(node.xmi_id, entry)

        return pending, owners

    # -------------------------------------------------------------------------
    # Pass 2: resolve
    # -------------------------------------------------------------------------

    def _resolve(
        self,
        owners: list[tuple[int, ClassNode]],
        index: TypeIndex,
        plan: IngestPlan,
    ) -> None:
        stats = plan.stats
        for class_id, node in owners:
            parent_id: int | None = None
            for ref in node.general_refs:
                target = index.get(ref)
                if target is None:
                    stats.dropped_edges += 1
                    continue
                if parent_id is None:
                    parent_id = target.class_id
                plan.relationships.append(
                    {
                        "source_class_id": class_id,
                        "target_class_id": target.class_id,
                        "relationship_type": RelationshipType.GENERALIZATION.value,
                        "name": "",
                    }
                )
            if parent_id is not None:
                plan.parents.append({"id": class_id, "parent_id": parent_id})

            for prop in node.properties:
                if not prop.name:
                    continue
                if prop.association:
                    target = index.get(prop.type_ref)
                    if target is None:
                        stats.dropped_edges += 1
                        continue
                    plan.relationships.append(
                        {
                            "source_class_id": class_id,
                            "target_class_id": target.class_id,
                            "relationship_type": RelationshipType.ASSOCIATION.value,
                            "name": prop.name,
                        }
                    )
                    continue

                type_name, type_id = self._resolve_type(prop.type_ref, index, stats)
                min_occurs = parse_lower(prop.lower)
                plan.properties.append(
                    {
                        "class_id": class_id,
                        "name": prop.name,
                        "type_name": type_name,
                        "type_id": type_id,
                        "description": prop.description,
                        "is_required": min_occurs == 1,
                        "min_occurs": min_occurs,
                        "max_occurs": parse_upper(prop.upper),
                    }
                )

    @staticmethod
    def _resolve_type(
        type_ref: str | None, index: TypeIndex, stats: IngestStats
    ) -> tuple[str, int | None]:
        entry = index.get(type_ref)
        if entry is not None:
            return entry.name, entry.class_id
        if type_ref and type_ref in PRIMITIVE_TYPES:
            stats.primitive_types += 1
            return PRIMITIVE_TYPES[type_ref], None
        stats.defaulted_types += 1
        return DEFAULT_TYPE_NAME, None

    @staticmethod
    def _emit_enumerations(pending: list[_PendingEnum], plan: IngestPlan) -> None:
        for enum in pending:
            plan.enumerations.append(
                {
                    "id": enum.enum_id,
                    "xmi_id": enum.xmi_id,
                    "name": enum.name,
                    "description": enum.description,
                    "class_id": enum.class_id,
                    "origin": enum.origin.value,
                }
            )
            plan.enum_values.extend(
                {
                    "enum_id": enum.enum_id,
                    "value": literal.name,
                    "description": literal.description or literal.name,
                }
                for literal in enum.values
            )
