# tests/unit/analysis/test_pdf_text.py — v1
"""Tests for analysis/pdf_text.py: PyMuPDF text extraction."""

from __future__ import annotations

import fitz
import pytest

from buildcheck.analysis.pdf_text import PdfExtractionError, extract_pdf_text


def _pdf(*pages: str) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text)
    content = doc.tobytes()
    doc.close()
    return content


class TestExtractPdfText:
    def test_pages_joined(self):
        text = extract_pdf_text(_pdf("Gross floor area: 240 m2", "Floors: 2"))
        assert "Gross floor area: 240 m2" in text
        assert text.index("240") < text.index("Floors")

    def test_garbage_raises(self):
        with pytest.raises(PdfExtractionError, match="memoria.pdf"):
            extract_pdf_text(b"not a pdf at all", "memoria.pdf")
