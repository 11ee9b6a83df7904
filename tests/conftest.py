"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
and provides a small XMI data dictionary shared by the ingest, store, query
and CLI tests.
"""

import sys
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local mismokb package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of mismokb modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("mismokb"):
        del sys.modules[module_name]


# =============================================================================
# Sample XMI
# =============================================================================

XMI_HEADER = """<?xml version="1.0" encoding="UTF-8"?>
<xmi:XMI xmlns:xmi="http://www.omg.org/spec/XMI/20131001" xmlns:uml="http://www.omg.org/spec/UML/20131001">
  <uml:Model xmi:type="uml:Model" xmi:id="MODEL" name="EA_Model">
    <packagedElement xmi:type="uml:Package" xmi:id="PKG_OTHER" name="Other Model"/>
"""

XMI_FOOTER = """  </uml:Model>
</xmi:XMI>
"""

PROPERTY_PACKAGE = """
<packagedElement xmi:type="uml:Package" xmi:id="PKG_PROPERTY" name="Property">
  <packagedElement xmi:type="uml:Class" xmi:id="C_PROPERTY" name="Property">
    <ownedComment xmi:type="uml:Comment" xmi:id="CM1" body="A parcel of residential real estate."/>
    <ownedAttribute xmi:type="uml:Property" xmi:id="P1" name="PropertyType">
      <type xmi:idref="E_PROPERTY_TYPE"/>
      <lowerValue xmi:type="uml:LiteralInteger" xmi:id="L1" value="1"/>
      <upperValue xmi:type="uml:LiteralUnlimitedNatural" xmi:id="U1" value="1"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="P2" name="YearBuilt">
      <type xmi:idref="EAJava_int"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="P3" name="BedroomTotalCount">
      <type xmi:idref="EAJava_int"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="P4" name="BathroomTotalCount">
      <type xmi:idref="EAJava_double"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="P5" name="Address">
      <type xmi:idref="C_ADDRESS"/>
      <lowerValue xmi:type="uml:LiteralInteger" xmi:id="L5" value="1"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="P6" name="ArchitecturalDesignType">
      <type xmi:idref="C_ARCH_ENUM"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="P7" name="GrossLivingAreaSquareFeetCount" type="EAJava_int">
      <ownedComment xmi:type="uml:Comment" xmi:id="CM7"><body>Finished above-grade living area.</body></ownedComment>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="P8" name="LegacyCode">
      <type xmi:idref="UNKNOWN_REF"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="P9" name="Notes"/>
    <ownedAttribute xmi:type="uml:Property" xmi:id="P10" name="HasPool">
      <type href="http://www.omg.org/spec/UML/20131001/PrimitiveTypes.xmi#Boolean"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="P11" name="Site" association="AS1">
      <type xmi:idref="C_SITE"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="P12" name="Appraiser" association="AS2">
      <type xmi:idref="C_MISSING"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="P13"/>
  </packagedElement>
  <packagedElement xmi:type="uml:Class" xmi:id="C_SFR" name="SingleFamilyProperty">
    <generalization xmi:type="uml:Generalization" xmi:id="G1" general="C_PROPERTY"/>
    <ownedAttribute xmi:type="uml:Property" xmi:id="P20" name="AccessoryUnitCount">
      <type xmi:idref="EAJava_int"/>
      <upperValue xmi:type="uml:LiteralUnlimitedNatural" xmi:id="U20" value="*"/>
    </ownedAttribute>
  </packagedElement>
  <packagedElement xmi:type="uml:Class" xmi:id="C_ARCH_ENUM" name="ArchitecturalDesignEnum">
    <ownedAttribute xmi:type="uml:Property" xmi:id="P30" name="Ranch"/>
    <ownedAttribute xmi:type="uml:Property" xmi:id="P31" name="Colonial"/>
    <ownedAttribute xmi:type="uml:Property" xmi:id="P32" name="CapeCod"/>
  </packagedElement>
</packagedElement>
"""

KITCHEN_PACKAGE = """
<packagedElement xmi:type="uml:Package" xmi:id="PKG_KITCHEN" name="Kitchen">
  <packagedElement xmi:type="uml:Class" xmi:id="C_KITCHEN" name="Kitchen">
    <ownedAttribute xmi:type="uml:Property" xmi:id="K1" name="CountertopMaterialType">
      <type xmi:idref="C_COUNTER_ENUM"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="K2" name="CabinetMaterialType">
      <type xmi:idref="EAJava_String"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="K3" name="UpdateYear">
      <type xmi:idref="EAJava_int"/>
    </ownedAttribute>
  </packagedElement>
  <packagedElement xmi:type="uml:Class" xmi:id="C_APPLIANCE" name="Appliance">
    <ownedAttribute xmi:type="uml:Property" xmi:id="K10" name="ApplianceType">
      <type xmi:idref="EAJava_String"/>
    </ownedAttribute>
  </packagedElement>
  <packagedElement xmi:type="uml:Class" xmi:id="C_ROOM" name="Room">
    <ownedAttribute xmi:type="uml:Property" xmi:id="K20" name="RoomType">
      <type xmi:idref="EAJava_String"/>
    </ownedAttribute>
  </packagedElement>
  <packagedElement xmi:type="uml:Class" xmi:id="C_BATHROOM" name="Bathroom">
    <ownedAttribute xmi:type="uml:Property" xmi:id="K30" name="VanityCounterMaterialType">
      <type xmi:idref="EAJava_String"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="K31" name="BathtubCount">
      <type xmi:idref="EAJava_int"/>
    </ownedAttribute>
  </packagedElement>
  <packagedElement xmi:type="uml:Class" xmi:id="C_LAUNDRY" name="Laundry">
    <ownedAttribute xmi:type="uml:Property" xmi:id="K40" name="CabinetCount">
      <type xmi:idref="EAJava_int"/>
    </ownedAttribute>
  </packagedElement>
  <packagedElement xmi:type="uml:Class" xmi:id="C_COUNTER_ENUM" name="KitchenCountertopMaterialEnum">
    <ownedAttribute xmi:type="uml:Property" xmi:id="K50" name="Granite">
      <ownedComment xmi:type="uml:Comment" xmi:id="CM50" body="Natural granite slab."/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="K51" name="Quartz"/>
    <ownedAttribute xmi:type="uml:Property" xmi:id="K52" name="Laminate"/>
  </packagedElement>
  <packagedElement xmi:type="uml:Package" xmi:id="PKG_INTERIOR" name="Interior">
    <packagedElement xmi:type="uml:Class" xmi:id="C_ROOM_2" name="Room">
      <ownedAttribute xmi:type="uml:Property" xmi:id="K60" name="RoomType">
        <type xmi:idref="EAJava_String"/>
      </ownedAttribute>
      <ownedAttribute xmi:type="uml:Property" xmi:id="K61" name="FloorCoveringType">
        <type xmi:idref="EAJava_String"/>
      </ownedAttribute>
    </packagedElement>
  </packagedElement>
</packagedElement>
"""

VALUATION_PACKAGE = """
<packagedElement xmi:type="uml:Package" xmi:id="PKG_VALUATION" name="Valuation">
  <packagedElement xmi:type="uml:Class" xmi:id="C_VALUATION" name="PropertyValuation">
    <ownedAttribute xmi:type="uml:Property" xmi:id="V1" name="PropertyValuationAmount">
      <type xmi:idref="EAJava_BigDecimal"/>
      <lowerValue xmi:type="uml:LiteralInteger" xmi:id="VL1" value="1"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="V2" name="PropertyValuationEffectiveDate">
      <type xmi:idref="EAJava_Date"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="V3" name="PropertyValuationMethodType">
      <type xmi:idref="E_VALUATION_METHOD"/>
    </ownedAttribute>
  </packagedElement>
</packagedElement>
"""

SITE_PACKAGE = """
<packagedElement xmi:type="uml:Package" xmi:id="PKG_SITE" name="Site">
  <packagedElement xmi:type="uml:Class" xmi:id="C_SITE" name="Site">
    <ownedAttribute xmi:type="uml:Property" xmi:id="S1" name="SiteAcreageNumber">
      <type xmi:idref="EAJava_double"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="S2" name="ZoningClassificationType">
      <type xmi:idref="EAJava_String"/>
    </ownedAttribute>
  </packagedElement>
  <packagedElement xmi:type="uml:Class" xmi:id="C_ADDRESS" name="Address">
    <ownedAttribute xmi:type="uml:Property" xmi:id="S10" name="AddressLineText">
      <type xmi:idref="EAJava_String"/>
      <upperValue xmi:type="uml:LiteralUnlimitedNatural" xmi:id="SU10" value="*"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="S11" name="CityName">
      <type xmi:idref="EAJava_String"/>
    </ownedAttribute>
    <ownedAttribute xmi:type="uml:Property" xmi:id="S12" name="PostalCode">
      <type xmi:idref="EAJava_String"/>
      <lowerValue xmi:type="uml:LiteralInteger" xmi:id="SL12" value="1"/>
    </ownedAttribute>
  </packagedElement>
</packagedElement>
"""

ENUMS_PACKAGE = """
<packagedElement xmi:type="uml:Package" xmi:id="PKG_ENUMS" name="Enumerations">
  <packagedElement xmi:type="uml:Enumeration" xmi:id="E_PROPERTY_TYPE" name="PropertyTypeEnum">
    <ownedComment xmi:type="uml:Comment" xmi:id="CM100" body="Kinds of residential property."/>
    <ownedLiteral xmi:type="uml:EnumerationLiteral" xmi:id="EL1" name="SingleFamily">
      <ownedComment xmi:type="uml:Comment" xmi:id="CM101" body="Detached single-family dwelling."/>
    </ownedLiteral>
    <ownedLiteral xmi:type="uml:EnumerationLiteral" xmi:id="EL2" name="Condominium"/>
    <ownedLiteral xmi:type="uml:EnumerationLiteral" xmi:id="EL3" name="Townhouse"/>
    <ownedLiteral xmi:type="uml:EnumerationLiteral" xmi:id="EL4" name="ManufacturedHousing"/>
  </packagedElement>
  <packagedElement xmi:type="uml:Enumeration" xmi:id="E_VALUATION_METHOD" name="ValuationMethodEnum">
    <ownedLiteral xmi:type="uml:EnumerationLiteral" xmi:id="EL10" name="SalesComparison"/>
    <ownedLiteral xmi:type="uml:EnumerationLiteral" xmi:id="EL11" name="CostApproach"/>
    <ownedLiteral xmi:type="uml:EnumerationLiteral" xmi:id="EL12" name="IncomeApproach"/>
  </packagedElement>
  <packagedElement xmi:type="uml:Enumeration" xmi:id="E_UNUSED" name="UnusedEnum"/>
</packagedElement>
"""

EMPTY_PACKAGE = """
<packagedElement xmi:type="uml:Package" xmi:id="PKG_EMPTY" name="Empty"/>
"""

DEFAULT_PACKAGES = (
    PROPERTY_PACKAGE,
    KITCHEN_PACKAGE,
    VALUATION_PACKAGE,
    SITE_PACKAGE,
    ENUMS_PACKAGE,
    EMPTY_PACKAGE,
)

# Row counts produced by DEFAULT_PACKAGES
EXPECTED_COUNTS = {
    "classes": 16,
    "properties": 29,
    "enumerations": 4,
    "enum_values": 13,
    "relationships": 2,
}


def build_xmi(*packages: str, container: str = "Logical Data Model") -> str:
    """Wrap package fragments in an XMI document under the given container."""
    body = "".join(packages)
    return (
        XMI_HEADER
        + f'    <packagedElement xmi:type="uml:Package" xmi:id="PKG_LDM" name="{container}">\n'
        + body
        + "    </packagedElement>\n"
        + XMI_FOOTER
    )


@pytest.fixture
def xmi_fragments() -> dict[str, str]:
    """Package fragments of the sample dictionary, by package name."""
    return {
        "Property": PROPERTY_PACKAGE,
        "Kitchen": KITCHEN_PACKAGE,
        "Valuation": VALUATION_PACKAGE,
        "Site": SITE_PACKAGE,
        "Enumerations": ENUMS_PACKAGE,
        "Empty": EMPTY_PACKAGE,
    }


@pytest.fixture
def expected_counts() -> dict[str, int]:
    return dict(EXPECTED_COUNTS)


@pytest.fixture
def write_xmi(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing an XMI file; defaults to the full sample dictionary."""

    def _write(
        name: str = "mismo.xmi",
        packages: tuple[str, ...] = DEFAULT_PACKAGES,
        container: str = "Logical Data Model",
    ) -> Path:
        path = tmp_path / name
        path.write_text(build_xmi(*packages, container=container), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sample_xmi(write_xmi: Callable[..., Path]) -> Path:
    """The full sample dictionary on disk."""
    return write_xmi()


@pytest.fixture
def store(tmp_path: Path, sample_xmi: Path) -> Generator:
    """A knowledge store with the sample dictionary ingested."""
    from mismokb.store.knowledge import KnowledgeStore

    kb = KnowledgeStore(tmp_path / "kb" / "mismo.db").open()
    kb.ensure_ingested(sample_xmi)
    yield kb
    kb.close()


@pytest.fixture
def engine(store):  # type: ignore[no-untyped-def]
    """Query engine over the ingested sample store."""
    from mismokb.query.engine import QueryEngine

    return QueryEngine(store)
