# src/analysis/price_catalog.py — v1
"""Unit-price catalog and BOQ price matching.

Matching order per article: a unit price already in the BOQ, then an exact
catalog code, then the best description similarity (token Jaccard) among
catalog items with the same normalized unit.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import re
import unicodedata
from pathlib import Path

from pydantic import BaseModel, TypeAdapter

from buildcheck.core.models import BillOfQuantities, MatchReport, PriceMatch, UnmatchedArticle

logger = logging.getLogger(__name__)

DEFAULT_MATCH_THRESHOLD = 0.5

_STOPWORDS = frozenset({"de", "da", "do", "em", "com", "para", "the", "of", "and", "with", "in", "a", "e"})
_UNIT_ALIASES = {
    "m²": "m2", "m^2": "m2", "sqm": "m2",
    "m³": "m3", "m^3": "m3", "cum": "m3",
    "ml": "m", "lm": "m",
    "u": "un", "ud": "un", "unit": "un", "pcs": "un", "nr": "un", "no": "un",
    "vg": "ls", "sum": "ls",
}


class CatalogItem(BaseModel):
    code: str
    description: str
    unit: str
    unit_price: float
    chapter: str = ""


DEFAULT_CATALOG: list[CatalogItem] = [
    CatalogItem(code="MDL.IfcFooting", description="Reinforced concrete footing", unit="un", unit_price=850.0, chapter="Foundations"),
    CatalogItem(code="MDL.IfcPile", description="Bored concrete pile", unit="un", unit_price=1900.0, chapter="Foundations"),
    CatalogItem(code="MDL.IfcColumn", description="Reinforced concrete column", unit="un", unit_price=620.0, chapter="Structure"),
    CatalogItem(code="MDL.IfcBeam", description="Reinforced concrete beam", unit="un", unit_price=540.0, chapter="Structure"),
    CatalogItem(code="MDL.IfcSlab", description="Reinforced concrete slab panel", unit="un", unit_price=4200.0, chapter="Structure"),
    CatalogItem(code="MDL.IfcWall", description="Brick masonry wall", unit="un", unit_price=780.0, chapter="Masonry"),
    CatalogItem(code="MDL.IfcWallStandardCase", description="Brick masonry wall", unit="un", unit_price=780.0, chapter="Masonry"),
    CatalogItem(code="MDL.IfcRoof", description="Pitched roof with ceramic tiles", unit="un", unit_price=9500.0, chapter="Envelope"),
    CatalogItem(code="MDL.IfcDoor", description="Interior timber door", unit="un", unit_price=420.0, chapter="Openings"),
    CatalogItem(code="MDL.IfcWindow", description="Aluminium window with double glazing", unit="un", unit_price=650.0, chapter="Openings"),
    CatalogItem(code="MDL.IfcStair", description="Concrete staircase", unit="un", unit_price=3800.0, chapter="Circulation"),
    CatalogItem(code="MDL.IfcRailing", description="Steel railing", unit="un", unit_price=310.0, chapter="Circulation"),
    CatalogItem(code="EHS010", description="Reinforced concrete slab C25/30", unit="m3", unit_price=185.0, chapter="Structure"),
    CatalogItem(code="CSZ010", description="Concrete footing C25/30", unit="m3", unit_price=160.0, chapter="Foundations"),
    CatalogItem(code="FFZ010", description="Hollow brick masonry wall 15 cm", unit="m2", unit_price=32.5, chapter="Masonry"),
    CatalogItem(code="RPE010", description="Interior plaster finish on walls", unit="m2", unit_price=14.0, chapter="Finishes"),
    CatalogItem(code="RSG010", description="Ceramic floor tiling", unit="m2", unit_price=38.0, chapter="Finishes"),
    CatalogItem(code="RIP010", description="Interior paint two coats", unit="m2", unit_price=7.8, chapter="Finishes"),
    CatalogItem(code="QTT010", description="Ceramic roof tiles on battens", unit="m2", unit_price=42.0, chapter="Envelope"),
    CatalogItem(code="ADE010", description="Site excavation earthworks", unit="m3", unit_price=12.5, chapter="Earthworks"),
    CatalogItem(code="IFA010", description="Water supply pipe installation", unit="m", unit_price=18.0, chapter="Building services"),
    CatalogItem(code="IEI010", description="Electrical installation per dwelling", unit="un", unit_price=3200.0, chapter="Building services"),
]

_catalog_adapter = TypeAdapter(list[CatalogItem])


def normalize_unit(unit: str) -> str:
    key = unit.strip().lower().rstrip(".")
    return _UNIT_ALIASES.get(key, key)


def tokenize(text: str) -> frozenset[str]:
    ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode().lower()
    return frozenset(
        t for t in re.findall(r"[a-z0-9/]+", ascii_text) if len(t) > 1 and t not in _STOPWORDS
    )


def jaccard(a: frozenset[str], b: frozenset[str]) -> float:
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


class PriceCatalog:
    """Indexed unit-price items."""

    def __init__(self, items: list[CatalogItem]) -> None:
        self._items = items
        self._by_code = {item.code.upper(): item for item in items}
        self._tokens = [(item, tokenize(item.description)) for item in items]

    def __len__(self) -> int:
        return len(self._items)

    @classmethod
    def load(cls, path: Path | None = None) -> PriceCatalog:
        """Catalog from a JSON or CSV file, or the built-in items."""
        if path is None:
            return cls(list(DEFAULT_CATALOG))
        path = Path(path).expanduser()
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() == ".json":
            items = _catalog_adapter.validate_python(json.loads(text))
        else:
            items = _catalog_adapter.validate_python(list(csv.DictReader(io.StringIO(text))))
        logger.info("Loaded %d catalog items from %s", len(items), path)
        return cls(items)

    def by_code(self, code: str) -> CatalogItem | None:
        return self._by_code.get(code.strip().upper())

    def best_match(self, description: str, unit: str) -> tuple[CatalogItem | None, float]:
        tokens = tokenize(description)
        unit = normalize_unit(unit)
        best: CatalogItem | None = None
        best_score = 0.0
        for item, item_tokens in self._tokens:
            if normalize_unit(item.unit) != unit:
                continue
            score = jaccard(tokens, item_tokens)
            if score > best_score:
                best, best_score = item, score
        return best, best_score


def match_boq(
    boq: BillOfQuantities,
    catalog: PriceCatalog,
    threshold: float = DEFAULT_MATCH_THRESHOLD,
) -> MatchReport:
    report = MatchReport()
    for article in boq.articles:
        if article.unit_price is not None:
            report.matches.append(
                PriceMatch(
                    article_code=article.code,
                    catalog_code=article.code,
                    description=article.description,
                    unit=article.unit,
                    quantity=article.quantity,
                    unit_price=article.unit_price,
                    confidence=1.0,
                    source="boq",
                )
            )
            continue

        item = catalog.by_code(article.code)
        confidence = 1.0
        if item is None:
            item, confidence = catalog.best_match(article.description, article.unit)
            if confidence < threshold:
                item = None

        if item is None:
            report.unmatched.append(
                UnmatchedArticle(
                    article_code=article.code,
                    description=article.description,
                    unit=article.unit,
                    quantity=article.quantity,
                )
            )
            continue

        report.matches.append(
            PriceMatch(
                article_code=article.code,
                catalog_code=item.code,
                description=item.description,
                unit=article.unit,
                quantity=article.quantity,
                unit_price=item.unit_price,
                confidence=round(confidence, 3),
            )
        )
    logger.info(
        "Price matching: %d matched, %d unmatched (%d%% coverage)",
        len(report.matches),
        len(report.unmatched),
        report.coverage_percent,
    )
    return report
