# tests/unit/core/test_models.py — v2
"""Tests for core/models.py: project record and derived values."""

from __future__ import annotations

from datetime import date

from buildcheck.core.models import (
    InputFile,
    MatchReport,
    PriceMatch,
    ProjectRecord,
    add_working_days,
)


class TestInputFile:
    def test_extension(self):
        assert InputFile(name="Plan.IFC").extension == "ifc"
        assert InputFile(name="noext").extension == ""

    def test_from_path(self, tmp_path):
        path = tmp_path / "mapa.csv"
        path.write_bytes(b"a;b\n")
        f = InputFile.from_path(path)
        assert f.name == "mapa.csv"
        assert f.size == 4
        assert f.content == b"a;b\n"
        assert f.last_modified > 0


class TestProjectRecord:
    def test_apply_fields_known_and_attributes(self):
        project = ProjectRecord()
        changed = project.apply_fields({"location": "Porto", "plot_area": 420})
        assert project.location == "Porto"
        assert project.attributes["plot_area"] == 420
        assert changed == ["location", "plot_area"]

    def test_apply_fields_keeps_existing(self):
        project = ProjectRecord(name="Existing")
        assert project.apply_fields({"name": "Other"}) == []
        assert project.name == "Existing"

    def test_apply_fields_overwrite(self):
        project = ProjectRecord(name="Existing")
        project.apply_fields({"name": "Other"}, overwrite=True)
        assert project.name == "Other"

    def test_apply_fields_skips_empty(self):
        project = ProjectRecord()
        assert project.apply_fields({"location": "", "name": None}) == []

    def test_get_field(self):
        project = ProjectRecord(attributes={"ceiling_height": 2.6})
        assert project.get_field("ceiling_height") == 2.6
        assert project.get_field("building_type") == "residential"
        assert project.get_field("missing") is None


class TestMatchReport:
    def test_totals(self):
        report = MatchReport(
            matches=[
                PriceMatch(
                    article_code="A", catalog_code="C1", description="a", unit="m2",
                    quantity=2, unit_price=10, confidence=0.9,
                ),
                PriceMatch(
                    article_code="B", catalog_code="B", description="b", unit="un",
                    quantity=1, unit_price=5, confidence=1.0, source="boq",
                ),
            ],
            unmatched=[],
        )
        assert report.total_estimated_cost == 25
        assert report.coverage_percent == 100


class TestWorkingDays:
    def test_skips_weekend(self):
        # Friday + 1 working day -> Monday
        assert add_working_days(date(2026, 1, 2), 1) == date(2026, 1, 5)
