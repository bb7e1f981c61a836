# src/__init__.py — v1
"""buildcheck: staged construction-compliance analysis pipeline."""

from buildcheck.version import __version__

__all__ = ["__version__"]
