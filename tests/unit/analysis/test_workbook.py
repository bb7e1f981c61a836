# tests/unit/analysis/test_workbook.py — v1
"""Tests for analysis/workbook.py: openpyxl budget and compliance exports."""

from __future__ import annotations

import io
from datetime import date

import openpyxl

from buildcheck.analysis.workbook import budget_workbook, compliance_workbook
from buildcheck.core.models import (
    BillOfQuantities,
    BoqArticle,
    ComplianceFinding,
    ComplianceReport,
    MatchReport,
    PriceMatch,
    ProjectRecord,
    ProjectSchedule,
    ReviewedFinding,
    ScheduleTask,
)


def _load(content: bytes):
    return openpyxl.load_workbook(io.BytesIO(content))


BOQ = BillOfQuantities(
    source="upload",
    articles=[
        BoqArticle(code="E01", description="Concrete", unit="m3", quantity=10, chapter="Structure"),
        BoqArticle(code="A01", description="Brick wall", unit="m2", quantity=80, chapter="Masonry"),
    ],
)
REPORT = MatchReport(matches=[
    PriceMatch(article_code="E01", catalog_code="EHS010", description="Slab", unit="m3",
               quantity=10, unit_price=185, confidence=0.8),
])


class TestBudgetWorkbook:
    def test_sheets_and_rows(self):
        wb = _load(budget_workbook(ProjectRecord(name="Casa"), BOQ, REPORT))
        assert wb.sheetnames == ["Budget", "Summary"]
        budget = wb["Budget"]
        assert budget["A1"].value == "Casa"
        assert budget["B4"].value == "E01"
        assert budget["G4"].value == 1850
        assert budget["H4"].value == "catalog"
        assert budget["H5"].value == "unpriced"
        summary = wb["Summary"]
        assert summary["A4"].value == "Total"
        assert summary["B4"].value == 1850

    def test_schedule_sheet(self):
        schedule = ProjectSchedule(
            start_date=date(2026, 3, 2),
            tasks=[ScheduleTask(uid=1, name="Structure", start=date(2026, 3, 2),
                                finish=date(2026, 3, 6), duration_days=4)],
        )
        wb = _load(budget_workbook(ProjectRecord(), BOQ, None, schedule))
        assert wb.sheetnames == ["Budget", "Summary", "Schedule"]
        assert wb["Schedule"]["B2"].value == "Structure"
        assert wb["Budget"]["A1"].value == "Project budget"


class TestComplianceWorkbook:
    def test_rows_with_review(self):
        report = ComplianceReport(
            findings=[
                ComplianceFinding(id="ARCH-01", area="architecture", description="Height",
                                  severity="critical", current_value=2.2, required_value=2.4),
                ComplianceFinding(id="GEN-01", area="general", description="Area", severity="pass"),
            ],
            rules_evaluated=2,
        )
        review = [ReviewedFinding(finding_id="ARCH-01", verified=False, relevance="high", note="check")]
        ws = _load(compliance_workbook(ProjectRecord(), report, review))["Compliance"]
        assert ws["A4"].value == "ARCH-01"
        assert ws["G4"].value == "2.2"
        assert ws["I4"].value == "no"
        assert ws["K4"].value == "check"
        assert ws["A5"].value == "GEN-01"
        assert ws["I5"].value is None
