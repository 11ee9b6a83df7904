"""Tests for two-pass schema normalization."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from sqlmodel import select

from mismokb.core.errors import ErrorCode, IngestError
from mismokb.ingest.ingestor import IngestPlan, SchemaIngestor, parse_lower, parse_upper
from mismokb.ingest.xmi import load_schema_tree
from mismokb.store.database import Database
from mismokb.store.models import EnumOrigin, IngestState, SchemaClass, SchemaProperty


def _plan(path: Path, **kwargs: Any) -> IngestPlan:
    ingestor = SchemaIngestor(**kwargs)
    return ingestor.build(load_schema_tree(path, ingestor.top_container))


def _resolved_types(plan: IngestPlan) -> dict[str, str]:
    """'Class.Property' -> type name, first class of a name wins."""
    names = {row["id"]: row["name"] for row in plan.classes}
    result: dict[str, str] = {}
    for prop in plan.properties:
        result.setdefault(f"{names[prop['class_id']]}.{prop['name']}", prop["type_name"])
    return result


class TestMultiplicityParsing:
    """Tests for parse_lower / parse_upper."""

    @pytest.mark.parametrize(
        ("token", "expected"),
        [(None, 0), ("0", 0), ("1", 1), (" 2 ", 2), ("n", 0)],
    )
    def test_parse_lower(self, token: str | None, expected: int) -> None:
        assert parse_lower(token) == expected

    @pytest.mark.parametrize(
        ("token", "expected"),
        [(None, 1), ("1", 1), ("*", -1), ("-1", -1), ("5", 5), ("many", 1)],
    )
    def test_parse_upper(self, token: str | None, expected: int) -> None:
        assert parse_upper(token) == expected


class TestBuildPlan:
    """Tests for SchemaIngestor.build on the sample dictionary."""

    def test_stats(self, sample_xmi: Path) -> None:
        """Every row kind is counted, along with resolution outcomes."""
        stats = _plan(sample_xmi).stats

        assert stats.classes == 16
        assert stats.enum_classes == 5
        assert stats.properties == 29
        assert stats.enumerations == 4
        assert stats.enum_values == 13
        assert stats.relationships == 2
        assert stats.primitive_types == 22
        assert stats.defaulted_types == 2
        assert stats.dropped_edges == 1

    def test_primitive_and_class_types(self, sample_xmi: Path) -> None:
        """Primitives map to portable names; class refs keep the class name."""
        types = _resolved_types(_plan(sample_xmi))

        assert types["Property.YearBuilt"] == "integer"
        assert types["Property.BathroomTotalCount"] == "double"
        assert types["Property.HasPool"] == "boolean"
        assert types["PropertyValuation.PropertyValuationAmount"] == "decimal"
        assert types["Property.Address"] == "Address"

    def test_unresolved_and_missing_types_default_to_string(self, sample_xmi: Path) -> None:
        types = _resolved_types(_plan(sample_xmi))

        assert types["Property.LegacyCode"] == "string"
        assert types["Property.Notes"] == "string"

    def test_enum_typed_properties_point_at_enum_class(self, sample_xmi: Path) -> None:
        """type_id of an enum-typed property is the enumeration's class row."""
        plan = _plan(sample_xmi)
        classes = {row["id"]: row for row in plan.classes}
        enum_by_class = {row["class_id"]: row for row in plan.enumerations}

        prop = next(p for p in plan.properties if p["name"] == "PropertyType")
        assert prop["type_name"] == "PropertyTypeEnum"
        assert classes[prop["type_id"]]["is_enum"] is True
        assert enum_by_class[prop["type_id"]]["name"] == "PropertyTypeEnum"

    def test_required_follows_lower_bound(self, sample_xmi: Path) -> None:
        plan = _plan(sample_xmi)
        required = {p["name"] for p in plan.properties if p["is_required"]}

        assert required == {
            "PropertyType",
            "Address",
            "PropertyValuationAmount",
            "PostalCode",
        }

    def test_only_lower_bound_of_one_is_required(self, write_xmi: Callable[..., Path]) -> None:
        """A lower bound above one keeps min_occurs but is not flagged required."""
        pairs = """
<packagedElement xmi:type="uml:Package" xmi:id="PKG_PAIR" name="Pairs">
  <packagedElement xmi:type="uml:Class" xmi:id="C_PAIR" name="Borrower">
    <ownedAttribute xmi:type="uml:Property" xmi:id="PA1" name="ContactPointTelephoneValue">
      <lowerValue xmi:type="uml:LiteralInteger" xmi:id="PL1" value="2"/>
      <upperValue xmi:type="uml:LiteralUnlimitedNatural" xmi:id="PU1" value="*"/>
    </ownedAttribute>
  </packagedElement>
</packagedElement>
"""
        plan = _plan(write_xmi(packages=(pairs,)))

        prop = plan.properties[0]
        assert prop["min_occurs"] == 2
        assert prop["is_required"] is False

    def test_unbounded_upper(self, sample_xmi: Path) -> None:
        plan = _plan(sample_xmi)
        by_name = {p["name"]: p for p in plan.properties}

        assert by_name["AccessoryUnitCount"]["max_occurs"] == -1
        assert by_name["AddressLineText"]["max_occurs"] == -1
        assert by_name["YearBuilt"]["max_occurs"] == 1

    def test_generalization_sets_parent_and_edge(self, sample_xmi: Path) -> None:
        plan = _plan(sample_xmi)
        ids = {row["name"]: row["id"] for row in reversed(plan.classes)}

        assert plan.parents == [{"id": ids["SingleFamilyProperty"], "parent_id": ids["Property"]}]
        kinds = {
            (r["source_class_id"], r["target_class_id"], r["relationship_type"], r["name"])
            for r in plan.relationships
        }
        assert (ids["SingleFamilyProperty"], ids["Property"], "generalization", "") in kinds
        assert (ids["Property"], ids["Site"], "association", "Site") in kinds

    def test_associations_are_not_properties(self, sample_xmi: Path) -> None:
        names = {p["name"] for p in _plan(sample_xmi).properties}

        assert "Site" not in names
        assert "Appraiser" not in names

    def test_package_paths(self, sample_xmi: Path) -> None:
        rows = [row for row in _plan(sample_xmi).classes if row["name"] == "Room"]

        assert [row["package"] for row in rows] == [
            "Logical Data Model.Kitchen",
            "Logical Data Model.Kitchen.Interior",
        ]

    def test_suffix_enum_values_from_attributes(self, sample_xmi: Path) -> None:
        """A suffix class without literals uses its attribute names as values."""
        plan = _plan(sample_xmi)
        enum = next(e for e in plan.enumerations if e["name"] == "KitchenCountertopMaterialEnum")
        values = [v for v in plan.enum_values if v["enum_id"] == enum["id"]]

        assert enum["origin"] == EnumOrigin.SUFFIX.value
        assert [v["value"] for v in values] == ["Granite", "Quartz", "Laminate"]
        assert values[0]["description"] == "Natural granite slab."
        assert values[1]["description"] == "Quartz"

    def test_empty_enumeration_has_class_row_only(self, sample_xmi: Path) -> None:
        plan = _plan(sample_xmi)

        assert any(row["name"] == "UnusedEnum" and row["is_enum"] for row in plan.classes)
        assert all(e["name"] != "UnusedEnum" for e in plan.enumerations)

    def test_enum_suffix_can_be_disabled(self, sample_xmi: Path) -> None:
        """With no suffix, *Enum classes are ordinary classes with properties."""
        plan = _plan(sample_xmi, enum_suffix="")

        assert plan.stats.enumerations == 2
        assert plan.stats.enum_classes == 3
        assert "ArchitecturalDesignEnum.Ranch" in _resolved_types(plan)


class TestForwardReferences:
    """Declaration order must not change resolution."""

    def test_reversed_package_order_resolves_identically(
        self, write_xmi: Callable[..., Path], xmi_fragments: dict[str, str]
    ) -> None:
        """Types referenced before their declaration resolve to the same names."""
        forward = write_xmi(
            "forward.xmi",
            packages=tuple(xmi_fragments.values()),
        )
        backward = write_xmi(
            "backward.xmi",
            packages=tuple(reversed(list(xmi_fragments.values()))),
        )

        forward_plan = _plan(forward)
        backward_plan = _plan(backward)

        assert _resolved_types(forward_plan) == _resolved_types(backward_plan)
        assert forward_plan.stats.relationships == backward_plan.stats.relationships
        assert forward_plan.stats.dropped_edges == backward_plan.stats.dropped_edges


class TestEnumerationMerge:
    """Explicit enumerations and suffix classes with the same name."""

    SHADOW = """
<packagedElement xmi:type="uml:Package" xmi:id="PKG_SHADOW" name="Shadow">
  <packagedElement xmi:type="uml:Enumeration" xmi:id="E_STYLE" name="StyleEnum">
    <ownedLiteral xmi:type="uml:EnumerationLiteral" xmi:id="SL1" name="Ranch"/>
    <ownedLiteral xmi:type="uml:EnumerationLiteral" xmi:id="SL2" name="Colonial"/>
  </packagedElement>
  <packagedElement xmi:type="uml:Class" xmi:id="C_STYLE" name="StyleEnum">
    <ownedAttribute xmi:type="uml:Property" xmi:id="SA1" name="Victorian"/>
  </packagedElement>
  <packagedElement xmi:type="uml:Class" xmi:id="C_HOUSE" name="House">
    <ownedAttribute xmi:type="uml:Property" xmi:id="SA2" name="Style">
      <type xmi:idref="C_STYLE"/>
    </ownedAttribute>
  </packagedElement>
</packagedElement>
"""

    def test_explicit_enumeration_wins(self, write_xmi: Callable[..., Path]) -> None:
        """The shadowed suffix class aliases the explicit enumeration."""
        plan = _plan(write_xmi(packages=(self.SHADOW,)))

        assert [e["name"] for e in plan.enumerations] == ["StyleEnum"]
        assert plan.enumerations[0]["origin"] == EnumOrigin.EXPLICIT.value
        assert [v["value"] for v in plan.enum_values] == ["Ranch", "Colonial"]

        explicit_class = plan.enumerations[0]["class_id"]
        style = next(p for p in plan.properties if p["name"] == "Style")
        assert style["type_id"] == explicit_class
        assert all(p["name"] != "Victorian" for p in plan.properties)

    def test_shadowed_class_row_is_enum(self, write_xmi: Callable[..., Path]) -> None:
        plan = _plan(write_xmi(packages=(self.SHADOW,)))

        rows = [row for row in plan.classes if row["name"] == "StyleEnum"]
        assert len(rows) == 2
        assert all(row["is_enum"] for row in rows)


class TestIdentifiers:
    """Identifier handling."""

    def test_duplicate_id_is_fatal(self, write_xmi: Callable[..., Path]) -> None:
        dup = """
<packagedElement xmi:type="uml:Package" xmi:id="PKG_DUP" name="Dup">
  <packagedElement xmi:type="uml:Class" xmi:id="C_SAME" name="First"/>
  <packagedElement xmi:type="uml:Class" xmi:id="C_SAME" name="Second"/>
</packagedElement>
"""
        with pytest.raises(IngestError) as exc_info:
            _plan(write_xmi(packages=(dup,)))

        assert exc_info.value.code == ErrorCode.SCHEMA_DUPLICATE_ID
        assert exc_info.value.details == {"xmi_id": "C_SAME", "first": "First", "second": "Second"}

    def test_anonymous_class_gets_synthetic_id(self, write_xmi: Callable[..., Path]) -> None:
        anon = """
<packagedElement xmi:type="uml:Package" xmi:id="PKG_ANON" name="Anon">
  <packagedElement xmi:type="uml:Class" name="Nameless"/>
</packagedElement>
"""
        plan = _plan(write_xmi(packages=(anon,)))

        assert plan.classes[0]["xmi_id"] == "_anonymous_1"


class TestIngestIntoDatabase:
    """Tests for SchemaIngestor.ingest through a BulkWriter."""

    def test_writes_rows_and_marker(self, tmp_path: Path, sample_xmi: Path) -> None:
        db = Database(tmp_path / "ingest.db")
        db.create_all()

        with db.bulk_writer() as writer:
            stats = SchemaIngestor().ingest(writer, sample_xmi, source_sha256="abc")

        with db.bulk_writer() as writer:
            assert writer.count(SchemaClass) == stats.classes
            assert writer.count(SchemaProperty) == stats.properties
            assert writer.count(IngestState) == 1

        with db.session() as session:
            marker = session.get(IngestState, 1)
            sfr = session.exec(
                select(SchemaClass).where(SchemaClass.name == "SingleFamilyProperty")
            ).one()
            parent = session.get(SchemaClass, sfr.parent_id)
        assert marker is not None
        assert marker.source_sha256 == "abc"
        assert marker.class_count == 16
        assert parent is not None
        assert parent.name == "Property"
        db.dispose()

    def test_reingest_replaces_rows(self, tmp_path: Path, sample_xmi: Path) -> None:
        """A second ingestion wipes the first instead of appending."""
        db = Database(tmp_path / "twice.db")
        db.create_all()
        ingestor = SchemaIngestor()

        for _ in range(2):
            with db.bulk_writer() as writer:
                ingestor.ingest(writer, sample_xmi, source_sha256="abc")

        with db.bulk_writer() as writer:
            assert writer.count(SchemaClass) == 16
            assert writer.count(SchemaProperty) == 29
        db.dispose()
