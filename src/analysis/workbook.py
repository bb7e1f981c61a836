# src/analysis/workbook.py — v1
"""Budget and compliance workbooks rendered with openpyxl."""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from buildcheck.core.models import (
        BillOfQuantities,
        ComplianceReport,
        MatchReport,
        ProjectRecord,
        ProjectSchedule,
        ReviewedFinding,
    )

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

COLORS = {
    "header": "1F4E78",
    "critical": "F8CBAD",
    "warning": "FFE699",
    "info": "DDEBF7",
    "pass": "C6EFCE",
    "unpriced": "FCE4D6",
}


def _header(ws: Any, row: int, labels: list[str]) -> None:
    from openpyxl.styles import Font, PatternFill

    for col, label in enumerate(labels, start=1):
        cell = ws.cell(row=row, column=col, value=label)
        cell.font = Font(bold=True, color="FFFFFF")
        cell.fill = PatternFill(
            start_color=COLORS["header"], end_color=COLORS["header"], fill_type="solid"
        )


def _fill(ws: Any, row: int, ncols: int, color: str) -> None:
    from openpyxl.styles import PatternFill

    fill = PatternFill(start_color=color, end_color=color, fill_type="solid")
    for col in range(1, ncols + 1):
        ws.cell(row=row, column=col).fill = fill


def _widths(ws: Any, widths: list[int]) -> None:
    from openpyxl.utils import get_column_letter

    for idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width


def _save(wb: Any) -> bytes:
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def budget_workbook(
    project: ProjectRecord,
    boq: BillOfQuantities,
    match_report: MatchReport | None = None,
    schedule: ProjectSchedule | None = None,
) -> bytes:
    """Priced bill of quantities, a chapter summary and, if given, the schedule."""
    import openpyxl
    from openpyxl.styles import Font

    prices = {m.article_code: m for m in (match_report.matches if match_report else [])}

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Budget"
    ws.cell(row=1, column=1, value=project.name or "Project budget").font = Font(bold=True, size=14)
    columns = ["Chapter", "Code", "Description", "Unit", "Quantity", "Unit price", "Total", "Source"]
    _header(ws, 3, columns)

    row = 4
    chapter_totals: dict[str, float] = {}
    for chapter, articles in boq.chapters().items():
        for article in articles:
            match = prices.get(article.code)
            total = match.estimated_cost if match else None
            ws.cell(row=row, column=1, value=chapter)
            ws.cell(row=row, column=2, value=article.code)
            ws.cell(row=row, column=3, value=article.description)
            ws.cell(row=row, column=4, value=article.unit)
            ws.cell(row=row, column=5, value=article.quantity)
            ws.cell(row=row, column=6, value=match.unit_price if match else None)
            ws.cell(row=row, column=7, value=total)
            ws.cell(row=row, column=8, value=match.source if match else "unpriced")
            if match is None:
                _fill(ws, row, len(columns), COLORS["unpriced"])
            chapter_totals[chapter] = chapter_totals.get(chapter, 0.0) + (total or 0.0)
            row += 1
    _widths(ws, [18, 16, 48, 8, 12, 12, 14, 10])

    summary = wb.create_sheet("Summary")
    _header(summary, 1, ["Chapter", "Total"])
    for i, (chapter, total) in enumerate(chapter_totals.items(), start=2):
        summary.cell(row=i, column=1, value=chapter)
        summary.cell(row=i, column=2, value=round(total, 2))
    grand = len(chapter_totals) + 2
    summary.cell(row=grand, column=1, value="Total").font = Font(bold=True)
    summary.cell(row=grand, column=2, value=round(sum(chapter_totals.values()), 2)).font = Font(bold=True)
    _widths(summary, [24, 16])

    if schedule is not None and schedule.tasks:
        plan = wb.create_sheet("Schedule")
        _header(plan, 1, ["UID", "Task", "Start", "Finish", "Days", "Predecessors"])
        for i, task in enumerate(schedule.tasks, start=2):
            plan.cell(row=i, column=1, value=task.uid)
            plan.cell(row=i, column=2, value=task.name)
            plan.cell(row=i, column=3, value=task.start)
            plan.cell(row=i, column=4, value=task.finish)
            plan.cell(row=i, column=5, value=task.duration_days)
            plan.cell(row=i, column=6, value=", ".join(str(p) for p in task.predecessors))
        _widths(plan, [6, 40, 12, 12, 8, 16])

    return _save(wb)


def compliance_workbook(
    project: ProjectRecord,
    report: ComplianceReport,
    review: list[ReviewedFinding] | None = None,
) -> bytes:
    """One row per finding, colored by severity, with the AI review if any."""
    import openpyxl
    from openpyxl.styles import Font

    reviewed = {r.finding_id: r for r in (review or [])}

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Compliance"
    ws.cell(row=1, column=1, value=project.name or "Compliance report").font = Font(bold=True, size=14)
    columns = [
        "ID", "Area", "Description", "Severity", "Regulation", "Article",
        "Current", "Required", "Verified", "Relevance", "Review note",
    ]
    _header(ws, 3, columns)

    for row, finding in enumerate(report.findings, start=4):
        rv = reviewed.get(finding.id)
        values = [
            finding.id,
            finding.area,
            finding.description,
            finding.severity,
            finding.regulation,
            finding.article,
            None if finding.current_value is None else str(finding.current_value),
            None if finding.required_value is None else str(finding.required_value),
            None if rv is None else ("yes" if rv.verified else "no"),
            None if rv is None else rv.relevance,
            None if rv is None else rv.note,
        ]
        for col, value in enumerate(values, start=1):
            ws.cell(row=row, column=col, value=value)
        _fill(ws, row, len(columns), COLORS[finding.severity])

    _widths(ws, [10, 14, 48, 10, 14, 14, 12, 12, 9, 10, 40])
    return _save(wb)
