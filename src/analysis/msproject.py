# src/analysis/msproject.py — v1
"""Microsoft Project XML (2007+) schedule import and export.

Import reads tasks, dates, durations and finish-to-start predecessor
links; summary tasks and the project summary (UID 0) are skipped. Export
writes the same subset with one working day = 8 hours.
"""

from __future__ import annotations

import logging
import math
import re
import xml.etree.ElementTree as ET
from datetime import date, datetime

from buildcheck.core.models import ProjectSchedule, ScheduleTask, add_working_days

logger = logging.getLogger(__name__)

MSPROJECT_NS = "http://schemas.microsoft.com/project"
HOURS_PER_DAY = 8
_DURATION_RE = re.compile(r"^PT(?:(\d+(?:\.\d+)?)H)?(?:(\d+(?:\.\d+)?)M)?(?:(\d+(?:\.\d+)?)S)?$")


class ScheduleImportError(Exception):
    """Raised when XML is not a usable MS Project schedule."""


def is_msproject_xml(text: str) -> bool:
    """Cheap sniff: a <Project> root with the MS Project namespace or Tasks."""
    if "<Project" not in text:
        return False
    return MSPROJECT_NS in text or ("<Tasks" in text and "<Task>" in text)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child_text(el: ET.Element, name: str) -> str:
    for child in el:
        if _local(child.tag) == name:
            return (child.text or "").strip()
    return ""


def _children(el: ET.Element, name: str) -> list[ET.Element]:
    return [child for child in el if _local(child.tag) == name]


def _parse_date(value: str) -> date | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None


def parse_duration_days(value: str) -> int:
    """``PT24H0M0S`` -> 3 working days (rounded up)."""
    match = _DURATION_RE.match(value.strip()) if value else None
    if not match:
        return 0
    hours = float(match.group(1) or 0) + float(match.group(2) or 0) / 60
    return math.ceil(hours / HOURS_PER_DAY) if hours > 0 else 0


def parse_msproject_xml(text: str) -> ProjectSchedule:
    """Parse MS Project XML into a ProjectSchedule.

    Raises:
        ScheduleImportError: If the XML is malformed or has no tasks.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ScheduleImportError(f"malformed XML: {e}") from e
    if _local(root.tag) != "Project":
        raise ScheduleImportError("root element is not <Project>")

    project_start = _parse_date(_child_text(root, "StartDate"))
    tasks: list[ScheduleTask] = []
    tasks_el = _children(root, "Tasks")

    for el in _children(tasks_el[0], "Task") if tasks_el else []:
        try:
            uid = int(_child_text(el, "UID"))
        except ValueError:
            continue
        if uid == 0 or _child_text(el, "Summary") == "1":
            continue

        start = _parse_date(_child_text(el, "Start")) or project_start
        if start is None:
            continue
        duration = parse_duration_days(_child_text(el, "Duration"))
        finish = _parse_date(_child_text(el, "Finish")) or add_working_days(start, duration)
        predecessors = []
        for link in _children(el, "PredecessorLink"):
            pred = _child_text(link, "PredecessorUID")
            if pred.isdigit():
                predecessors.append(int(pred))

        tasks.append(
            ScheduleTask(
                uid=uid,
                name=_child_text(el, "Name") or f"Task {uid}",
                start=start,
                finish=finish,
                duration_days=duration,
                predecessors=predecessors,
            )
        )

    if not tasks:
        raise ScheduleImportError("no tasks found")

    known = {t.uid for t in tasks}
    for task in tasks:
        dangling = [p for p in task.predecessors if p not in known]
        if dangling:
            logger.debug("Task %d: dropping unknown predecessors %s", task.uid, dangling)
            task.predecessors = [p for p in task.predecessors if p in known]

    return ProjectSchedule(
        project_name=_child_text(root, "Name") or _child_text(root, "Title"),
        start_date=project_start or min(t.start for t in tasks),
        tasks=tasks,
        source="imported",
    )


def _sub(parent: ET.Element, name: str, text: object) -> ET.Element:
    el = ET.SubElement(parent, name)
    el.text = str(text)
    return el


def export_msproject_xml(schedule: ProjectSchedule) -> str:
    """Render a schedule as MS Project XML."""
    ET.register_namespace("", MSPROJECT_NS)
    root = ET.Element(f"{{{MSPROJECT_NS}}}Project")

    def sub(parent: ET.Element, name: str, text: object) -> ET.Element:
        return _sub(parent, f"{{{MSPROJECT_NS}}}{name}", text)

    sub(root, "SaveVersion", 14)
    sub(root, "Name", schedule.project_name or "Project")
    sub(root, "Title", schedule.project_name or "Project")
    sub(root, "ScheduleFromStart", 1)
    sub(root, "StartDate", f"{schedule.start_date.isoformat()}T08:00:00")
    sub(root, "FinishDate", f"{schedule.finish_date.isoformat()}T17:00:00")
    sub(root, "MinutesPerDay", HOURS_PER_DAY * 60)

    tasks_el = ET.SubElement(root, f"{{{MSPROJECT_NS}}}Tasks")
    for task in schedule.tasks:
        el = ET.SubElement(tasks_el, f"{{{MSPROJECT_NS}}}Task")
        sub(el, "UID", task.uid)
        sub(el, "ID", task.uid)
        sub(el, "Name", task.name)
        sub(el, "Start", f"{task.start.isoformat()}T08:00:00")
        sub(el, "Finish", f"{task.finish.isoformat()}T17:00:00")
        sub(el, "Duration", f"PT{task.duration_days * HOURS_PER_DAY}H0M0S")
        sub(el, "Summary", 0)
        sub(el, "Milestone", 1 if task.duration_days == 0 else 0)
        for pred in task.predecessors:
            link = ET.SubElement(el, f"{{{MSPROJECT_NS}}}PredecessorLink")
            sub(link, "PredecessorUID", pred)
            sub(link, "Type", 1)  # finish-to-start

    ET.indent(root)
    return ET.tostring(root, encoding="unicode", xml_declaration=True)
