# src/analysis/scheduler.py — v1
"""Construction schedule generation and element -> task mapping.

Schedules come from, in order of preference: an imported MS Project file,
the sequencing steps, or the BOQ chapters (duration = chapter cost divided
by a daily output). Dates skip weekends.
"""

from __future__ import annotations

import logging
import math
from datetime import date

from buildcheck.analysis.boq_reader import MODEL_CHAPTERS
from buildcheck.core.models import (
    BillOfQuantities,
    MatchReport,
    ModelAnalysis,
    ProjectSchedule,
    ScheduleTask,
    add_working_days,
)
from buildcheck.sequencing.models import Sequence

logger = logging.getLogger(__name__)

ELEMENTS_PER_DAY = 10

# BOQ chapters in build order; unknown chapters go last in file order
CHAPTER_ORDER: tuple[str, ...] = (
    "Earthworks",
    "Foundations",
    "Structure",
    "Masonry",
    "Envelope",
    "Openings",
    "Building services",
    "Circulation",
    "Finishes",
    "General",
)


def next_working_day(day: date) -> date:
    while day.weekday() >= 5:
        day = date.fromordinal(day.toordinal() + 1)
    return day


def schedule_from_sequence(
    sequence: Sequence, start: date, project_name: str = ""
) -> ProjectSchedule:
    """One task per sequence step; predecessors become finish-to-start links.

    Steps without predecessors start at the project start. Step durations
    default to one day per ten claimed elements.
    """
    start = next_working_day(start)
    uid_by_step = {step.step_id: i for i, step in enumerate(sequence.steps, start=1)}
    finish_by_uid: dict[int, date] = {}
    tasks: list[ScheduleTask] = []

    for uid, step in enumerate(sequence.steps, start=1):
        preds = [uid_by_step[p] for p in step.predecessors if uid_by_step.get(p, uid) < uid]
        task_start = max((finish_by_uid[p] for p in preds), default=start)
        if step.estimated_duration_days:
            duration = max(1, math.ceil(step.estimated_duration_days))
        else:
            duration = max(1, math.ceil(len(step.element_ids) / ELEMENTS_PER_DAY))
        finish = add_working_days(task_start, duration)
        finish_by_uid[uid] = finish
        tasks.append(
            ScheduleTask(
                uid=uid,
                name=step.name,
                start=task_start,
                finish=finish,
                duration_days=duration,
                predecessors=preds,
                phase=step.phase,
                element_ids=list(step.element_ids),
            )
        )
    return ProjectSchedule(
        project_name=project_name, start_date=start, tasks=tasks, source="sequence"
    )


def _chapter_rank(chapter: str) -> int:
    return CHAPTER_ORDER.index(chapter) if chapter in CHAPTER_ORDER else len(CHAPTER_ORDER)


def schedule_from_boq(
    boq: BillOfQuantities,
    match_report: MatchReport | None,
    start: date,
    daily_output: float,
    project_name: str = "",
) -> ProjectSchedule:
    """Sequential chapter tasks sized by cost over ``daily_output``."""
    start = next_working_day(start)
    prices = {}
    if match_report is not None:
        prices = {m.article_code: m.estimated_cost for m in match_report.matches}

    chapters = boq.chapters()
    ordered = sorted(chapters, key=_chapter_rank)
    tasks: list[ScheduleTask] = []
    cursor = start
    for uid, chapter in enumerate(ordered, start=1):
        articles = chapters[chapter]
        cost = sum(prices.get(a.code, 0.0) for a in articles)
        if cost > 0 and daily_output > 0:
            duration = max(1, math.ceil(cost / daily_output))
        else:
            duration = max(1, len(articles))
        finish = add_working_days(cursor, duration)
        tasks.append(
            ScheduleTask(
                uid=uid,
                name=chapter,
                start=cursor,
                finish=finish,
                duration_days=duration,
                predecessors=[uid - 1] if uid > 1 else [],
                phase=chapter.lower().replace(" ", "_"),
            )
        )
        cursor = finish
    return ProjectSchedule(project_name=project_name, start_date=start, tasks=tasks, source="boq")


def _phase_tokens(text: str) -> set[str]:
    return {t for t in text.lower().replace("_", " ").split() if len(t) > 3}


def map_elements_to_tasks(
    analyses: list[ModelAnalysis], schedule: ProjectSchedule
) -> dict[str, int]:
    """Element id -> task uid, for 4D playback.

    Tasks that list element ids claim them directly. Remaining elements are
    assigned by their BOQ chapter (via the IFC class) to the first task
    whose name or phase shares a word with that chapter.
    """
    mapping: dict[str, int] = {}
    for task in schedule.tasks:
        for element_id in task.element_ids:
            mapping.setdefault(element_id, task.uid)

    task_tokens = [(task.uid, _phase_tokens(f"{task.name} {task.phase}")) for task in schedule.tasks]
    for analysis in analyses:
        for element in analysis.elements:
            if element.id in mapping:
                continue
            chapter_tokens = _phase_tokens(MODEL_CHAPTERS.get(element.entity_type, ""))
            for uid, tokens in task_tokens:
                if chapter_tokens & tokens:
                    mapping[element.id] = uid
                    break

    total = sum(len(a.elements) for a in analyses)
    logger.info("Mapped %d/%d model elements to schedule tasks", len(mapping), total)
    return mapping

