# src/analysis/boq_reader.py — v1
"""Bill-of-quantities readers (CSV, XLSX) and model-derived BOQs.

Header rows are located among the first rows of the sheet by matching
known column aliases (English and Portuguese). Numbers accept both
``1,234.56`` and ``1.234,56`` notations.
"""

from __future__ import annotations

import csv
import io
import logging
import re
import unicodedata
import zipfile
from typing import Any, Iterable

from buildcheck.core.models import BillOfQuantities, BoqArticle, InputFile, ModelAnalysis

logger = logging.getLogger(__name__)

HEADER_SCAN_ROWS = 15

COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "code": ("code", "codigo", "ref", "reference", "item", "artigo", "art"),
    "description": ("description", "descricao", "designacao", "desc", "name"),
    "unit": ("unit", "un", "unid", "unidade", "uom"),
    "quantity": ("quantity", "qty", "quant", "quantidade", "qtd"),
    "unit_price": ("unit price", "unit_price", "price", "preco unitario", "preco", "rate"),
    "chapter": ("chapter", "capitulo", "section", "group"),
}
REQUIRED_COLUMNS = ("description", "quantity")

# IFC class -> BOQ chapter for model-derived quantities
MODEL_CHAPTERS: dict[str, str] = {
    "IfcFooting": "Foundations",
    "IfcPile": "Foundations",
    "IfcColumn": "Structure",
    "IfcBeam": "Structure",
    "IfcSlab": "Structure",
    "IfcMember": "Structure",
    "IfcPlate": "Structure",
    "IfcWall": "Masonry",
    "IfcWallStandardCase": "Masonry",
    "IfcCurtainWall": "Envelope",
    "IfcRoof": "Envelope",
    "IfcDoor": "Openings",
    "IfcWindow": "Openings",
    "IfcStair": "Circulation",
    "IfcStairFlight": "Circulation",
    "IfcRamp": "Circulation",
    "IfcRailing": "Circulation",
    "IfcCovering": "Finishes",
    "IfcFurnishingElement": "Finishes",
    "IfcFlowSegment": "Building services",
    "IfcFlowTerminal": "Building services",
    "IfcPipeSegment": "Building services",
    "IfcDuctSegment": "Building services",
    "IfcCableSegment": "Building services",
    "IfcSanitaryTerminal": "Building services",
}


class BoqFormatError(Exception):
    """Raised when a file cannot be read as a bill of quantities."""


def _normalize(text: Any) -> str:
    value = unicodedata.normalize("NFKD", str(text or "")).encode("ascii", "ignore").decode()
    return re.sub(r"[^a-z0-9 _]", "", value.lower()).strip()


def parse_number(value: Any) -> float | None:
    """Parse a cell as a float; None for blanks and text."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = re.sub(r"[^\d,.\-]", "", str(value))
    if not text:
        return None
    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        text = text.replace(",", ".")
    try:
        return float(text)
    except ValueError:
        return None


def _match_header(row: list[Any]) -> dict[str, int] | None:
    columns: dict[str, int] = {}
    for idx, cell in enumerate(row):
        label = _normalize(cell)
        if not label:
            continue
        for field, aliases in COLUMN_ALIASES.items():
            if field not in columns and label in aliases:
                columns[field] = idx
                break
    if all(c in columns for c in REQUIRED_COLUMNS):
        return columns
    return None


def articles_from_rows(rows: Iterable[list[Any]], source_name: str = "") -> list[BoqArticle]:
    """Locate the header row and turn every following data row into an article."""
    columns: dict[str, int] | None = None
    articles: list[BoqArticle] = []
    current_chapter = ""

    for line_no, row in enumerate(rows, start=1):
        if columns is None:
            if line_no > HEADER_SCAN_ROWS:
                break
            columns = _match_header(row)
            continue

        def cell(field: str) -> Any:
            idx = columns.get(field)  # type: ignore[union-attr]
            return row[idx] if idx is not None and idx < len(row) else None

        description = str(cell("description") or "").strip()
        quantity = parse_number(cell("quantity"))
        if not description:
            continue
        if quantity is None:
            # A description without a quantity heads a new chapter
            current_chapter = description
            continue

        code = str(cell("code") or "").strip() or f"L{line_no:04d}"
        chapter = str(cell("chapter") or "").strip() or current_chapter
        if not chapter and "." in code:
            chapter = code.split(".", 1)[0]
        articles.append(
            BoqArticle(
                code=code,
                description=description,
                unit=str(cell("unit") or "un").strip() or "un",
                quantity=quantity,
                unit_price=parse_number(cell("unit_price")),
                chapter=chapter,
            )
        )

    if columns is None:
        raise BoqFormatError(
            f"{source_name}: no header row with description and quantity columns"
        )
    return articles


def _csv_rows(text: str) -> list[list[str]]:
    sample = text[:4096]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=",;\t")
    except csv.Error:
        dialect = csv.excel
    return [row for row in csv.reader(io.StringIO(text), dialect)]


def _xlsx_rows(content: bytes) -> list[list[Any]]:
    import openpyxl

    wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        return [list(row) for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()


def read_boq(file: InputFile) -> list[BoqArticle]:
    """Read one uploaded BOQ file.

    Raises:
        BoqFormatError: Unsupported format or no recognizable header.
    """
    ext = file.extension
    if ext == "csv":
        rows = _csv_rows(file.text("utf-8-sig"))
    elif ext == "xlsx":
        try:
            rows = _xlsx_rows(file.content)
        except (OSError, KeyError, ValueError, zipfile.BadZipFile) as e:
            raise BoqFormatError(f"{file.name}: unreadable workbook ({e})") from e
    elif ext == "xls":
        raise BoqFormatError(f"{file.name}: legacy .xls workbooks are not supported, save as .xlsx")
    else:
        raise BoqFormatError(f"{file.name}: unsupported BOQ format .{ext}")

    articles = articles_from_rows(rows, file.name)
    logger.info("Read %d BOQ articles from %s", len(articles), file.name)
    return articles


def boq_from_model(analyses: list[ModelAnalysis]) -> BillOfQuantities:
    """Count elements per IFC class into a unit-count bill of quantities."""
    counts: dict[str, int] = {}
    for analysis in analyses:
        for entity_type, count in analysis.counts_by_type().items():
            counts[entity_type] = counts.get(entity_type, 0) + count

    articles = [
        BoqArticle(
            code=f"MDL.{entity_type}",
            description=f"{entity_type.removeprefix('Ifc')} elements",
            unit="un",
            quantity=float(count),
            chapter=MODEL_CHAPTERS.get(entity_type, "General"),
        )
        for entity_type, count in sorted(counts.items())
    ]
    return BillOfQuantities(
        source="model",
        source_files=[a.file_name for a in analyses],
        articles=articles,
    )
