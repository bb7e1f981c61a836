# src/sequencing/context.py — v1
"""Bounded text summaries of project context for sequencing prompts.

The reasoning service never sees raw bulk data: elements are grouped by
storey and type, documents are excerpted, and every section is capped.
"""

from __future__ import annotations

import json
from collections import defaultdict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from buildcheck.core.models import BillOfQuantities, ModelElement, ProjectRecord

_TRUNCATED = "\n[... truncated]"


def cap(text: str, limit: int) -> str:
    """Truncate ``text`` to ``limit`` characters with a visible marker."""
    if len(text) <= limit:
        return text
    return text[: max(0, limit - len(_TRUNCATED))] + _TRUNCATED


def summarize_project(project: ProjectRecord) -> str:
    data = project.model_dump(exclude_none=True, exclude_defaults=False)
    return json.dumps(data, ensure_ascii=False, default=str, indent=1)


def summarize_elements(elements: list[ModelElement], limit: int) -> str:
    """Element ids grouped by storey, then by entity type."""
    grouped: dict[str, dict[str, list[str]]] = defaultdict(lambda: defaultdict(list))
    for element in elements:
        grouped[element.storey or "(no storey)"][element.entity_type].append(element.id)

    lines = [f"{len(elements)} elements"]
    for storey in sorted(grouped):
        lines.append(f"## {storey}")
        for entity_type in sorted(grouped[storey]):
            ids = grouped[storey][entity_type]
            lines.append(f"- {entity_type} ({len(ids)}): {', '.join(ids)}")
    return cap("\n".join(lines), limit)


def summarize_boq(boq: BillOfQuantities, limit: int) -> str:
    lines = [f"Bill of quantities ({boq.source}, {len(boq.articles)} articles)"]
    for chapter, articles in boq.chapters().items():
        lines.append(f"## {chapter}")
        for a in articles:
            lines.append(f"- {a.code} {a.description} [{a.quantity:g} {a.unit}]")
    return cap("\n".join(lines), limit)


def assemble_enriched_context(
    project: ProjectRecord,
    elements: list[ModelElement],
    boq: BillOfQuantities | None,
    document_texts: list[str],
    limit: int,
) -> str:
    """Full project context for deep runs, split evenly across its sections."""
    sections = [("PROJECT", summarize_project(project))]
    section_limit = limit // 4
    sections.append(("MODEL", summarize_elements(elements, section_limit)))
    if boq is not None and boq.articles:
        sections.append(("BILL OF QUANTITIES", summarize_boq(boq, section_limit)))
    if document_texts:
        per_doc = max(500, section_limit // len(document_texts))
        excerpts = "\n---\n".join(cap(t.strip(), per_doc) for t in document_texts if t.strip())
        if excerpts:
            sections.append(("DOCUMENTS", cap(excerpts, section_limit)))

    body = "\n\n".join(f"=== {title} ===\n{text}" for title, text in sections)
    return cap(body, limit)
