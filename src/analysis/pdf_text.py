# src/analysis/pdf_text.py — v1
"""PDF text extraction using PyMuPDF (fitz).

Requires the 'pymupdf' package.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class PdfExtractionError(Exception):
    """Raised when a PDF cannot be opened or read."""


def extract_pdf_text(content: bytes, name: str = "document.pdf") -> str:
    """Return the text of every page joined by newlines."""
    try:
        import fitz  # PyMuPDF
    except ImportError as e:
        raise ImportError(
            "pymupdf package required for PDF extraction: pip install pymupdf"
        ) from e

    try:
        doc = fitz.open(stream=content, filetype="pdf")
    except (RuntimeError, ValueError) as e:
        raise PdfExtractionError(f"{name}: cannot open PDF ({e})") from e

    try:
        pages = [doc[i].get_text("text") for i in range(len(doc))]
    finally:
        doc.close()

    text = "\n".join(pages).strip()
    logger.debug("Extracted %d chars from %d pages of %s", len(text), len(pages), name)
    return text
