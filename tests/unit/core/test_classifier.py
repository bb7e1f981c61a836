# tests/unit/core/test_classifier.py — v1
"""Tests for core/classifier.py: extension-based grouping."""

from __future__ import annotations

from buildcheck.core.classifier import classify_files
from helpers import make_file


class TestClassifyFiles:
    def test_groups_by_extension(self):
        files = [
            make_file("a.ifc"),
            make_file("b.XLSX"),
            make_file("c.csv"),
            make_file("d.pdf"),
            make_file("e.xml"),
            make_file("f.dwg"),
            make_file("README"),
        ]
        groups = classify_files(files)
        assert [f.name for f in groups.model] == ["a.ifc"]
        assert [f.name for f in groups.boq] == ["b.XLSX", "c.csv"]
        assert [f.name for f in groups.documents] == ["d.pdf"]
        assert [f.name for f in groups.schedule] == ["e.xml"]
        assert [f.name for f in groups.other] == ["f.dwg", "README"]

    def test_groups_are_disjoint_and_complete(self):
        files = [make_file(n) for n in ("x.ifc", "y.pdf", "z.txt", "w.xls")]
        groups = classify_files(files)
        names = groups.names()
        flat = [n for group in names.values() for n in group]
        assert sorted(flat) == sorted(f.name for f in files)

    def test_empty_input(self):
        groups = classify_files([])
        assert groups.has_typed_files is False

    def test_only_unrecognized(self):
        assert classify_files([make_file("notes.txt")]).has_typed_files is False

    def test_preserves_order_within_group(self):
        groups = classify_files([make_file("b.pdf"), make_file("a.pdf")])
        assert [f.name for f in groups.documents] == ["b.pdf", "a.pdf"]
