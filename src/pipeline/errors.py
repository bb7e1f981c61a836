# src/pipeline/errors.py — v1
"""Pipeline exception hierarchy."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for pipeline failures."""


class PipelineInputError(PipelineError):
    """Job-level hard failure: nothing usable was submitted."""


class StageError(PipelineError):
    """Explicit stage failure; converted to a warning by the orchestrator."""
