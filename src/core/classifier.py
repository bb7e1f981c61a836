# src/core/classifier.py — v1
"""Partition an uploaded batch into typed groups by extension."""

from __future__ import annotations

from typing import Iterable

from buildcheck.core.models import ClassifiedFiles, InputFile

# Extension -> ClassifiedFiles field. Anything unlisted goes to "other".
EXTENSION_GROUPS: dict[str, str] = {
    "ifc": "model",
    "xls": "boq",
    "xlsx": "boq",
    "csv": "boq",
    "pdf": "documents",
    "xml": "schedule",
}


def classify_files(files: Iterable[InputFile]) -> ClassifiedFiles:
    """Split files into model, boq, documents, schedule and other groups.

    Pure function: never raises, input order is preserved within a group.
    """
    groups = ClassifiedFiles()
    for f in files:
        group = EXTENSION_GROUPS.get(f.extension, "other")
        getattr(groups, group).append(f)
    return groups
