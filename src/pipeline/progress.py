# src/pipeline/progress.py — v1
"""Weighted progress reporting for one pipeline run.

The reporter keeps a cumulative percent that only ``complete_stage``
advances. Events are emitted at that percent (``report``) or part way into
the current stage's weight (``report_partial``). Calling ``complete_stage``
twice for the same stage counts its weight twice; the orchestrator calls it
exactly once per stage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Mapping, Sequence

from buildcheck.config.stages import STAGE_WEIGHTS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    """Snapshot sent to progress listeners."""

    stage: str
    percent: int
    message: str
    stage_percent: int = 0
    stages_completed: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


ProgressListener = Callable[[ProgressEvent], Awaitable[None]]


@dataclass
class ProgressReporter:
    """Cumulative weighted progress for a single run.

    Args:
        listener: Awaited with every event; None to only track state.
        warnings: Live view of the run's warnings log, copied into events.
        weights: Stage id -> weight table.
    """

    listener: ProgressListener | None = None
    warnings: Sequence[str] = field(default_factory=list)
    weights: Mapping[str, int] = field(default_factory=lambda: STAGE_WEIGHTS)
    cumulative: float = 0.0
    completed: list[str] = field(default_factory=list)

    @property
    def percent(self) -> int:
        return min(100, round(self.cumulative))

    async def report(self, stage: str, message: str) -> ProgressEvent:
        """Emit at the current cumulative percent."""
        stage_percent = 100 if stage in self.completed else 0
        return await self._emit(stage, self.cumulative, message, stage_percent)

    async def report_partial(self, stage: str, fraction: float, message: str) -> ProgressEvent:
        """Emit part way through ``stage`` without advancing the cumulative percent."""
        fraction = max(0.0, min(1.0, fraction))
        value = self.cumulative + self.weights.get(stage, 0) * fraction
        return await self._emit(stage, value, message, round(fraction * 100))

    def complete_stage(self, stage: str) -> None:
        self.completed.append(stage)
        self.cumulative += self.weights.get(stage, 0)

    async def _emit(
        self, stage: str, value: float, message: str, stage_percent: int
    ) -> ProgressEvent:
        event = ProgressEvent(
            stage=stage,
            percent=min(100, round(value)),
            message=message,
            stage_percent=stage_percent,
            stages_completed=tuple(self.completed),
            warnings=tuple(self.warnings),
        )
        logger.debug("Progress %3d%% [%s] %s", event.percent, stage, message)
        if self.listener is not None:
            await self.listener(event)
        return event
