# src/cache/fingerprint.py — v3
"""Input fingerprint used as the result-cache key.

SHA-256 over the name-sorted ``name:size:last_modified`` triples joined by
``|``, followed by a canonical encoding of the options that change the
result. Content bytes are not hashed: size and modification time stand in
for them.
"""

from __future__ import annotations

import hashlib
from typing import Iterable

from buildcheck.core.models import InputFile, PipelineOptions


def _flag(value: bool) -> str:
    return "true" if value else "false"


def options_suffix(options: PipelineOptions | None) -> str:
    opts = options or PipelineOptions()
    return (
        f"|opts:{_flag(opts.include_costs)}:{_flag(opts.include_schedule)}"
        f":{_flag(opts.include_compliance)}:{opts.analysis_depth}"
    )


def compute_fingerprint(
    files: Iterable[InputFile],
    options: PipelineOptions | None = None,
) -> str:
    """Deterministic, order-independent hash of a submission."""
    ordered = sorted(files, key=lambda f: f.name)
    raw = "|".join(f"{f.name}:{f.size}:{f.last_modified}" for f in ordered)
    raw += options_suffix(options)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def files_summary(files: Iterable[InputFile]) -> str:
    """Human-readable list of inputs stored next to a cache entry."""
    return ", ".join(f"{f.name} ({f.size} B)" for f in files)
