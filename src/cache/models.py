# src/cache/models.py — v1
"""Cache domain models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class CacheEntry(BaseModel):
    """A serialized pipeline result keyed by its input fingerprint."""

    fingerprint: str
    result: dict[str, Any]
    cached_at: datetime
    summary: str = ""
