"""SQLModel definitions for the knowledge store.

Single source of truth for all table schemas.

Layout:
- classes: every class and enumeration of the data dictionary (enumerations
  carry is_enum=1 so a property typed by one always has a type_id)
- properties: attributes of non-enum classes with resolved type and cardinality
- enumerations / enum_values: permissible value sets
- relationships: generalization and association edges between classes
- ingest_state: singleton completion marker written with the data
"""

from enum import Enum

from sqlmodel import Field, SQLModel

# ============================================================================
# ENUMS
# ============================================================================


class RelationshipType(str, Enum):
    """Edge kind between two classes."""

    GENERALIZATION = "generalization"
    ASSOCIATION = "association"


class EnumOrigin(str, Enum):
    """How an enumeration was detected."""

    EXPLICIT = "explicit"  # uml:Enumeration element
    SUFFIX = "suffix"  # uml:Class whose name ends with the enum suffix


# ============================================================================
# TABLES
# ============================================================================


class SchemaClass(SQLModel, table=True):
    """A class (or enumeration type) of the data dictionary."""

    __tablename__ = "classes"

    id: int | None = Field(default=None, primary_key=True)
    xmi_id: str = Field(unique=True, index=True)
    name: str = Field(index=True)
    package: str = ""  # Dot-joined package path, starting at the top container
    description: str = ""
    is_enum: bool = Field(default=False)
    parent_id: int | None = Field(default=None, foreign_key="classes.id")


class SchemaProperty(SQLModel, table=True):
    """An attribute of a class."""

    __tablename__ = "properties"

    id: int | None = Field(default=None, primary_key=True)
    class_id: int = Field(foreign_key="classes.id", index=True)
    name: str = Field(index=True)
    type_name: str
    type_id: int | None = Field(default=None, foreign_key="classes.id", index=True)
    description: str = ""
    is_required: bool = Field(default=False)
    min_occurs: int = 0
    max_occurs: int = 1  # -1 = unbounded


class Enumeration(SQLModel, table=True):
    """A permissible value set."""

    __tablename__ = "enumerations"

    id: int | None = Field(default=None, primary_key=True)
    xmi_id: str = Field(unique=True, index=True)
    name: str = Field(index=True)
    description: str = ""
    class_id: int = Field(foreign_key="classes.id", index=True)
    origin: str = EnumOrigin.EXPLICIT.value


class EnumValue(SQLModel, table=True):
    """One permissible value of an enumeration."""

    __tablename__ = "enum_values"

    id: int | None = Field(default=None, primary_key=True)
    enum_id: int = Field(foreign_key="enumerations.id", index=True)
    value: str
    description: str = ""


class Relationship(SQLModel, table=True):
    """Directed edge between two classes."""

    __tablename__ = "relationships"

    id: int | None = Field(default=None, primary_key=True)
    source_class_id: int = Field(foreign_key="classes.id")
    target_class_id: int = Field(foreign_key="classes.id")
    relationship_type: str
    name: str = ""


class IngestState(SQLModel, table=True):
    """Ingestion completion marker (singleton row, id=1)."""

    __tablename__ = "ingest_state"

    id: int = Field(default=1, primary_key=True)
    format_version: int
    source_path: str
    source_sha256: str
    class_count: int = 0
    property_count: int = 0
    enumeration_count: int = 0
    enum_value_count: int = 0
    relationship_count: int = 0
    completed_at: float | None = None

    def expected_counts(self) -> dict[str, int]:
        """Row counts recorded at ingest, keyed like SchemaQueries.counts()."""
        return {
            "classes": self.class_count,
            "properties": self.property_count,
            "enumerations": self.enumeration_count,
            "enum_values": self.enum_value_count,
            "relationships": self.relationship_count,
        }


# Child tables first so deletes never violate a foreign key.
DELETE_ORDER: tuple[type[SQLModel], ...] = (
    IngestState,
    Relationship,
    EnumValue,
    SchemaProperty,
    Enumeration,
    SchemaClass,
)
