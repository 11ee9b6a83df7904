"""Schema tree and ingestion bookkeeping types.

The tree mirrors the XMI export: packages nest packages, classes and
enumerations; classes own attributes, literals and generalizations.
Nothing here touches the database.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from mismokb.core.errors import IngestError

# =============================================================================
# Schema tree
# =============================================================================


@dataclass
class LiteralNode:
    """An enumeration literal."""

    name: str
    description: str = ""


@dataclass
class PropertyNode:
    """A class attribute as declared in the export."""

    name: str
    type_ref: str | None = None  # xmi id or primitive href fragment
    lower: str | None = None
    upper: str | None = None
    association: str | None = None  # set for association ends
    description: str = ""


@dataclass
class ClassNode:
    """A uml:Class."""

    xmi_id: str
    name: str
    description: str = ""
    properties: list[PropertyNode] = field(default_factory=list)
    literals: list[LiteralNode] = field(default_factory=list)
    general_refs: list[str] = field(default_factory=list)


@dataclass
class EnumerationNode:
    """A uml:Enumeration."""

    xmi_id: str
    name: str
    description: str = ""
    literals: list[LiteralNode] = field(default_factory=list)


@dataclass
class PackageNode:
    """A uml:Package with its direct children."""

    name: str
    xmi_id: str = ""
    packages: list[PackageNode] = field(default_factory=list)
    classes: list[ClassNode] = field(default_factory=list)
    enumerations: list[EnumerationNode] = field(default_factory=list)

    def walk(self, parent_path: str = "") -> list[tuple[str, PackageNode]]:
        """Depth-first (package_path, package) pairs, this package first."""
        path = f"{parent_path}.{self.name}" if parent_path else self.name
        result = [(path, self)]
        for child in self.packages:
            result.extend(child.walk(path))
        return result


# =============================================================================
# Identifier index
# =============================================================================


class TypeKind(str, Enum):
    """What a registered identifier names."""

    CLASS = "class"
    ENUM = "enum"


@dataclass(frozen=True)
class TypeEntry:
    """Resolution target for one external identifier."""

    name: str
    class_id: int
    kind: TypeKind
    enum_id: int | None = None


class TypeIndex:
    """External id -> TypeEntry, complete before any property is resolved."""

    def __init__(self) -> None:
        self._entries: dict[str, TypeEntry] = {}
        self._owners: dict[str, str] = {}

    def register(self, xmi_id: str, entry: TypeEntry) -> None:
        if xmi_id in self._entries:
            raise IngestError.duplicate_id(xmi_id, self._owners[xmi_id], entry.name)
        self._entries[xmi_id] = entry
        self._owners[xmi_id] = entry.name

    def get(self, xmi_id: str | None) -> TypeEntry | None:
        if not xmi_id:
            return None
        return self._entries.get(xmi_id)


# =============================================================================
# Stats
# =============================================================================


@dataclass
class IngestStats:
    """Counts from one ingestion pass."""

    classes: int = 0
    enum_classes: int = 0
    properties: int = 0
    enumerations: int = 0
    enum_values: int = 0
    relationships: int = 0
    primitive_types: int = 0
    defaulted_types: int = 0
    dropped_edges: int = 0
    duration_ms: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
