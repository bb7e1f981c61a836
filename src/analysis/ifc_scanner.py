# src/analysis/ifc_scanner.py — v1
"""Lightweight IFC (STEP physical file) scanner.

Reads the DATA section line by line and picks out building elements,
storeys and spatial containment. No geometry is evaluated.
"""

from __future__ import annotations

import re
from typing import Any, Iterable

from buildcheck.core.models import ModelAnalysis, ModelElement

# Upper-case STEP keyword -> IFC class name
ELEMENT_TYPES: dict[str, str] = {
    "IFCWALL": "IfcWall",
    "IFCWALLSTANDARDCASE": "IfcWallStandardCase",
    "IFCCURTAINWALL": "IfcCurtainWall",
    "IFCSLAB": "IfcSlab",
    "IFCROOF": "IfcRoof",
    "IFCBEAM": "IfcBeam",
    "IFCCOLUMN": "IfcColumn",
    "IFCMEMBER": "IfcMember",
    "IFCPLATE": "IfcPlate",
    "IFCFOOTING": "IfcFooting",
    "IFCPILE": "IfcPile",
    "IFCDOOR": "IfcDoor",
    "IFCWINDOW": "IfcWindow",
    "IFCSTAIR": "IfcStair",
    "IFCSTAIRFLIGHT": "IfcStairFlight",
    "IFCRAMP": "IfcRamp",
    "IFCRAILING": "IfcRailing",
    "IFCCOVERING": "IfcCovering",
    "IFCFURNISHINGELEMENT": "IfcFurnishingElement",
    "IFCFLOWSEGMENT": "IfcFlowSegment",
    "IFCFLOWTERMINAL": "IfcFlowTerminal",
    "IFCPIPESEGMENT": "IfcPipeSegment",
    "IFCDUCTSEGMENT": "IfcDuctSegment",
    "IFCCABLESEGMENT": "IfcCableSegment",
    "IFCSANITARYTERMINAL": "IfcSanitaryTerminal",
    "IFCBUILDINGELEMENTPROXY": "IfcBuildingElementProxy",
}

_ENTITY_RE = re.compile(r"^#(\d+)\s*=\s*([A-Z0-9_]+)\s*\((.*)\)\s*;\s*$", re.DOTALL)
_SCHEMA_RE = re.compile(r"FILE_SCHEMA\s*\(\s*\(\s*'([^']+)'", re.IGNORECASE)
_REF_RE = re.compile(r"#(\d+)")


class IfcParseError(Exception):
    """Raised when a file is not a STEP physical file."""


def split_args(raw: str) -> list[str]:
    """Split a STEP argument list on top-level commas.

    Quoted strings (with '' escapes) and nested parentheses are kept whole.
    """
    args: list[str] = []
    depth = 0
    in_str = False
    current: list[str] = []
    i = 0
    while i < len(raw):
        ch = raw[i]
        if in_str:
            current.append(ch)
            if ch == "'":
                if i + 1 < len(raw) and raw[i + 1] == "'":
                    current.append("'")
                    i += 1
                else:
                    in_str = False
        elif ch == "'":
            in_str = True
            current.append(ch)
        elif ch == "(":
            depth += 1
            current.append(ch)
        elif ch == ")":
            depth -= 1
            current.append(ch)
        elif ch == "," and depth == 0:
            args.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1
    if current or args:
        args.append("".join(current).strip())
    return args


def _string(arg: str | None) -> str:
    if not arg or arg in ("$", "*") or not arg.startswith("'"):
        return ""
    return arg[1:-1].replace("''", "'")


def _statements(text: str) -> Iterable[str]:
    """Yield complete ';'-terminated DATA statements (they may span lines)."""
    buffer: list[str] = []
    in_data = False
    for line in text.splitlines():
        stripped = line.strip()
        if not in_data:
            if stripped.upper() == "DATA;":
                in_data = True
            continue
        if stripped.upper() == "ENDSEC;":
            break
        buffer.append(stripped)
        if stripped.endswith(";"):
            yield " ".join(buffer)
            buffer = []


def scan_ifc(file_name: str, text: str) -> ModelAnalysis:
    """Extract elements, storeys and containment from IFC STEP text.

    Raises:
        IfcParseError: If the text has no ISO-10303-21 header.
    """
    if "ISO-10303-21" not in text[:200]:
        raise IfcParseError(f"{file_name} is not an IFC STEP file")

    schema_match = _SCHEMA_RE.search(text)
    elements: dict[str, ModelElement] = {}
    storeys: dict[str, str] = {}
    containment: list[tuple[list[str], str]] = []
    project_name = ""

    for statement in _statements(text):
        match = _ENTITY_RE.match(statement)
        if not match:
            continue
        ref, keyword, raw_args = match.groups()
        keyword = keyword.upper()

        if keyword in ELEMENT_TYPES:
            args = split_args(raw_args)
            global_id = _string(args[0]) if args else ""
            elements[ref] = ModelElement(
                id=global_id or f"#{ref}",
                entity_type=ELEMENT_TYPES[keyword],
                name=_string(args[2]) if len(args) > 2 else "",
            )
        elif keyword == "IFCBUILDINGSTOREY":
            args = split_args(raw_args)
            storeys[ref] = (_string(args[2]) if len(args) > 2 else "") or f"Storey #{ref}"
        elif keyword == "IFCRELCONTAINEDINSPATIALSTRUCTURE":
            args = split_args(raw_args)
            if len(args) >= 6:
                structure = _REF_RE.findall(args[5])
                if structure:
                    containment.append((_REF_RE.findall(args[4]), structure[0]))
        elif keyword == "IFCPROJECT" and not project_name:
            args = split_args(raw_args)
            project_name = (_string(args[2]) if len(args) > 2 else "") or (
                _string(args[4]) if len(args) > 4 else ""
            )

    for element_refs, structure_ref in containment:
        storey = storeys.get(structure_ref)
        if storey is None:
            continue
        for element_ref in element_refs:
            if element_ref in elements:
                elements[element_ref].storey = storey

    return ModelAnalysis(
        file_name=file_name,
        schema_version=schema_match.group(1) if schema_match else "",
        elements=list(elements.values()),
        storeys=list(storeys.values()),
        project_name=project_name,
    )


def project_fields_from_models(analyses: list[ModelAnalysis]) -> dict[str, Any]:
    """Project record fields a set of model files can supply."""
    fields: dict[str, Any] = {}
    names = [a.project_name for a in analyses if a.project_name]
    if names:
        fields["name"] = names[0]
    floors = max((len(a.storeys) for a in analyses), default=0)
    if floors:
        fields["number_of_floors"] = floors
    element_count = sum(len(a.elements) for a in analyses)
    if element_count:
        fields["element_count"] = element_count
    schemas = sorted({a.schema_version for a in analyses if a.schema_version})
    if schemas:
        fields["ifc_schema"] = ", ".join(schemas)
    return fields
