"""XMI (UML model interchange) reader.

Builds a PackageNode tree from an XMI export. Any XMI/UML namespace version
is accepted: element tags are matched by local name and ``xmi:``-prefixed
attributes by their local part.

Structure (namespaces elided):
<XMI>
  <Model name="...">
    <packagedElement xmi:type="uml:Package" name="Logical Data Model">
      <packagedElement xmi:type="uml:Package" name="Property">
        <packagedElement xmi:type="uml:Class" xmi:id="C1" name="Property">
          <ownedComment body="..."/>
          <generalization general="C0"/>
          <ownedAttribute name="YearBuilt" association="A1"?>
            <type xmi:idref="EAJava_int"/>
            <lowerValue value="1"/>
            <upperValue value="*"/>
          </ownedAttribute>
        </packagedElement>
        <packagedElement xmi:type="uml:Enumeration" xmi:id="E1" name="...">
          <ownedLiteral name="..."/>
        </packagedElement>
      </packagedElement>
    </packagedElement>
  </Model>
</XMI>
"""

import xml.etree.ElementTree as ET
from pathlib import Path

import structlog

from mismokb.core.errors import IngestError
from mismokb.ingest.models import (
    ClassNode,
    EnumerationNode,
    LiteralNode,
    PackageNode,
    PropertyNode,
)

logger = structlog.get_logger()


def _local(name: str) -> str:
    """Strip a '{namespace}' prefix from a tag or attribute key."""
    return name.split("}", 1)[1] if "}" in name else name


def _xmi_attr(elem: ET.Element, name: str) -> str | None:
    """Namespaced attribute (xmi:id, xmi:type, xmi:idref) by local name."""
    for key, value in elem.attrib.items():
        if key.startswith("{") and _local(key) == name:
            return value
    return None


def _children(elem: ET.Element, tag: str) -> list[ET.Element]:
    return [child for child in elem if _local(child.tag) == tag]


def _uml_kind(elem: ET.Element) -> str:
    """'uml:Class' -> 'Class'."""
    kind = _xmi_attr(elem, "type") or ""
    return kind.rsplit(":", 1)[-1]


def _description(elem: ET.Element) -> str:
    comments = _children(elem, "ownedComment")
    if not comments:
        return ""
    comment = comments[0]
    body = comment.get("body")
    if body is None:
        body_elems = _children(comment, "body")
        body = body_elems[0].text if body_elems else None
    return (body or "").strip()


def _bound(elem: ET.Element, tag: str) -> str | None:
    values = _children(elem, tag)
    if not values:
        return None
    return values[0].get("value")


def _type_ref(attr: ET.Element) -> str | None:
    ref = attr.get("type")
    if ref:
        return ref
    for type_elem in _children(attr, "type"):
        idref = _xmi_attr(type_elem, "idref")
        if idref:
            return idref
        href = type_elem.get("href")
        if href:
            return href.rsplit("#", 1)[-1]
    return None


def _read_literals(elem: ET.Element) -> list[LiteralNode]:
    return [
        LiteralNode(name=lit.get("name", ""), description=_description(lit))
        for lit in _children(elem, "ownedLiteral")
        if lit.get("name")
    ]


def _read_class(elem: ET.Element) -> ClassNode:
    properties = [
        PropertyNode(
            name=attr.get("name", ""),
            type_ref=_type_ref(attr),
            lower=_bound(attr, "lowerValue"),
            upper=_bound(attr, "upperValue"),
            association=attr.get("association"),
            description=_description(attr),
        )
        for attr in _children(elem, "ownedAttribute")
    ]
    general_refs = [
        gen.get("general", "") for gen in _children(elem, "generalization") if gen.get("general")
    ]
    return ClassNode(
        xmi_id=_xmi_attr(elem, "id") or "",
        name=elem.get("name", ""),
        description=_description(elem),
        properties=properties,
        literals=_read_literals(elem),
        general_refs=general_refs,
    )


def _read_package(elem: ET.Element) -> PackageNode:
    package = PackageNode(name=elem.get("name", ""), xmi_id=_xmi_attr(elem, "id") or "")
    for child in _children(elem, "packagedElement"):
        kind = _uml_kind(child)
        if kind == "Package":
            package.packages.append(_read_package(child))
        elif kind == "Class":
            package.classes.append(_read_class(child))
        elif kind == "Enumeration":
            package.enumerations.append(
                EnumerationNode(
                    xmi_id=_xmi_attr(child, "id") or "",
                    name=child.get("name", ""),
                    description=_description(child),
                    literals=_read_literals(child),
                )
            )
    return package


def _find_model(root: ET.Element) -> ET.Element | None:
    if _local(root.tag) == "Model":
        return root
    for elem in root.iter():
        if _local(elem.tag) == "Model":
            return elem
    return None


def load_schema_tree(path: Path, top_container: str) -> PackageNode:
    """Parse an XMI file and return the top-level container package.

    Raises:
        IngestError: If the file is missing, is not well-formed XML, or has
            no model/top-level container package.
    """
    if not path.is_file():
        raise IngestError.file_not_found(str(path))

    try:
        tree = ET.parse(path)
    except ET.ParseError as e:
        raise IngestError.parse_error(str(path), str(e)) from e

    model = _find_model(tree.getroot())
    if model is None:
        raise IngestError.container_missing(str(path), top_container)

    for elem in _children(model, "packagedElement"):
        if _uml_kind(elem) == "Package" and elem.get("name") == top_container:
            package = _read_package(elem)
            logger.debug(
                "schema_tree_loaded",
                path=str(path),
                container=top_container,
                packages=len(package.walk()),
            )
            return package

    raise IngestError.container_missing(str(path), top_container)
