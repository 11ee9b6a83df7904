"""Read model over the knowledge store.

All lookups are exact-match or LIKE-based SQL over the normalized tables.
Nothing here writes; results are plain dataclasses so callers never hold
on to ORM objects tied to a closed session.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import case, func, or_
from sqlalchemy.orm import aliased
from sqlmodel import SQLModel, col, select

from mismokb.store.models import (
    EnumOrigin,
    Enumeration,
    EnumValue,
    IngestState,
    Relationship,
    SchemaClass,
    SchemaProperty,
)

if TYPE_CHECKING:
    from mismokb.store.database import Database


@dataclass(frozen=True)
class FieldRow:
    """A property joined with its owning class and, if any, its enumeration."""

    class_id: int
    class_name: str
    package: str
    class_description: str
    property_id: int
    property_name: str
    property_description: str
    type_name: str
    type_id: int | None
    is_required: bool
    min_occurs: int
    max_occurs: int
    enum_id: int | None = None
    enum_name: str | None = None

    @property
    def path(self) -> str:
        return f"{self.class_name}.{self.property_name}"


@dataclass(frozen=True)
class EnumRow:
    """An enumeration with its ordered values."""

    id: int
    name: str
    description: str
    origin: str
    values: tuple[tuple[str, str], ...]  # (value, description)


@dataclass(frozen=True)
class EdgeRow:
    """A relationship with class names resolved."""

    source: str
    target: str
    relationship_type: str
    name: str


class SchemaQueries:
    """Query helpers for the ingested data dictionary."""

    def __init__(self, db: Database) -> None:
        self._db = db

    # -------------------------------------------------------------------------
    # Fields
    # -------------------------------------------------------------------------

    def _field_stmt(self) -> Any:
        return (
            select(
                SchemaClass.id,
                SchemaClass.name,
                SchemaClass.package,
                SchemaClass.description,
                SchemaProperty.id,
                SchemaProperty.name,
                SchemaProperty.description,
                SchemaProperty.type_name,
                SchemaProperty.type_id,
                SchemaProperty.is_required,
                SchemaProperty.min_occurs,
                SchemaProperty.max_occurs,
                Enumeration.id,
                Enumeration.name,
            )
            .select_from(SchemaProperty)
            .join(SchemaClass, col(SchemaProperty.class_id) == col(SchemaClass.id))
            .outerjoin(Enumeration, col(Enumeration.class_id) == col(SchemaProperty.type_id))
        )

    @staticmethod
    def _to_field(row: Sequence[Any]) -> FieldRow:
        return FieldRow(
            class_id=row[0],
            class_name=row[1],
            package=row[2],
            class_description=row[3] or "",
            property_id=row[4],
            property_name=row[5],
            property_description=row[6] or "",
            type_name=row[7],
            type_id=row[8],
            is_required=bool(row[9]),
            min_occurs=row[10],
            max_occurs=row[11],
            enum_id=row[12],
            enum_name=row[13],
        )

    def get_field(self, class_name: str, property_name: str) -> FieldRow | None:
        """Exact lookup; the first class by (package, id) wins a name clash."""
        stmt = (
            self._field_stmt()
            .where(
                col(SchemaClass.name) == class_name,
                col(SchemaProperty.name) == property_name,
            )
            .order_by(col(SchemaClass.package), col(SchemaClass.id), col(SchemaProperty.id))
            .limit(1)
        )
        with self._db.session() as session:
            row = session.exec(stmt).first()
        return self._to_field(row) if row is not None else None

    def search_fields(self, class_names: Sequence[str], keywords: Sequence[str]) -> list[FieldRow]:
        """Fields owned by any of class_names or whose name contains any keyword.

        Keyword matching is case-insensitive; LIKE wildcards in keywords are
        matched literally.
        """
        conditions = []
        if class_names:
            conditions.append(col(SchemaClass.name).in_(list(class_names)))
        conditions.extend(
            col(SchemaProperty.name).icontains(kw, autoescape=True) for kw in keywords if kw
        )
        if not conditions:
            return []

        stmt = (
            self._field_stmt()
            .where(or_(*conditions))
            .order_by(col(SchemaClass.name), col(SchemaProperty.name), col(SchemaProperty.id))
        )
        with self._db.session() as session:
            rows = session.exec(stmt).all()
        return [self._to_field(row) for row in rows]

    # -------------------------------------------------------------------------
    # Enumerations
    # -------------------------------------------------------------------------

    def _load_enum(self, enum: Enumeration) -> EnumRow:
        stmt = (
            select(EnumValue.value, EnumValue.description)
            .where(col(EnumValue.enum_id) == enum.id)
            .order_by(col(EnumValue.value), col(EnumValue.id))
        )
        with self._db.session() as session:
            values = tuple((value, desc or value) for value, desc in session.exec(stmt).all())
        assert enum.id is not None
        return EnumRow(
            id=enum.id,
            name=enum.name,
            description=enum.description or "",
            origin=enum.origin,
            values=values,
        )

    def get_enumeration(self, name: str) -> EnumRow | None:
        """Enumeration by name; explicit ones win collisions, then lowest id."""
        explicit_first = case((col(Enumeration.origin) == EnumOrigin.EXPLICIT.value, 0), else_=1)
        stmt = (
            select(Enumeration)
            .where(col(Enumeration.name) == name)
            .order_by(explicit_first, col(Enumeration.id))
            .limit(1)
        )
        with self._db.session() as session:
            enum = session.exec(stmt).first()
        return self._load_enum(enum) if enum is not None else None

    def get_enumeration_by_id(self, enum_id: int) -> EnumRow | None:
        with self._db.session() as session:
            enum = session.get(Enumeration, enum_id)
        return self._load_enum(enum) if enum is not None else None

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------

    def _edges(self, class_name: str, *, outgoing: bool) -> list[EdgeRow]:
        source = aliased(SchemaClass)
        target = aliased(SchemaClass)
        anchor = source if outgoing else target
        stmt = (
            select(source.name, target.name, Relationship.relationship_type, Relationship.name)
            .select_from(Relationship)
            .join(source, col(Relationship.source_class_id) == source.id)
            .join(target, col(Relationship.target_class_id) == target.id)
            .where(anchor.name == class_name)
            .order_by(
                col(Relationship.relationship_type),
                source.name,
                target.name,
                col(Relationship.name),
            )
        )
        with self._db.session() as session:
            rows = session.exec(stmt).all()
        return [
            EdgeRow(source=s, target=t, relationship_type=kind, name=name or "")
            for s, t, kind, name in rows
        ]

    def relationships_from(self, class_name: str) -> list[EdgeRow]:
        """Edges whose source class has this name."""
        return self._edges(class_name, outgoing=True)

    def relationships_to(self, class_name: str) -> list[EdgeRow]:
        """Edges whose target class has this name."""
        return self._edges(class_name, outgoing=False)

    # -------------------------------------------------------------------------
    # Bookkeeping
    # -------------------------------------------------------------------------

    def counts(self) -> dict[str, int]:
        """Live row count of every data table."""
        tables: dict[str, type[SQLModel]] = {
            "classes": SchemaClass,
            "properties": SchemaProperty,
            "enumerations": Enumeration,
            "enum_values": EnumValue,
            "relationships": Relationship,
        }
        result: dict[str, int] = {}
        with self._db.session() as session:
            for key, model in tables.items():
                table = model.__table__  # type: ignore[attr-defined]
                result[key] = int(session.exec(select(func.count()).select_from(table)).one())
        return result

    def marker(self) -> IngestState | None:
        """The ingestion completion marker, if a complete graph was committed."""
        with self._db.session() as session:
            return session.get(IngestState, 1)
