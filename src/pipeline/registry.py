# src/pipeline/registry.py — v2
"""Stage registry: stage id -> strategy object, built once at startup.

Stages are registered explicitly; an id is resolved from the static stage
table, never from a dotted import path. Expensive collaborators (catalogs,
rule sets) are created lazily inside the stages themselves.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from buildcheck.config.stages import DECLARED_ORDER
from buildcheck.pipeline.plugin_kit.base_stage import BaseStage

if TYPE_CHECKING:
    from buildcheck.config.settings import Settings

logger = logging.getLogger(__name__)

# Run inline by the orchestrator, no strategy object.
INLINE_STAGES = frozenset({"classify"})


class RegistryError(Exception):
    """Raised when a stage lookup or registration fails."""


class StageRegistry:
    """Registry of pipeline stages keyed by stage id."""

    def __init__(self, stages: Iterable[BaseStage] = ()) -> None:
        self._stages: dict[str, BaseStage] = {}
        for stage in stages:
            self.register(stage)

    @property
    def stage_names(self) -> list[str]:
        return sorted(self._stages)

    def register(self, stage: BaseStage) -> None:
        if stage.name not in DECLARED_ORDER:
            raise RegistryError(f"Unknown stage id: {stage.name!r}")
        if stage.name in INLINE_STAGES:
            raise RegistryError(f"Stage {stage.name!r} runs inline and cannot be replaced")
        if stage.name in self._stages:
            logger.warning("Overwriting existing stage: %s", stage.name)
        self._stages[stage.name] = stage

    def get(self, name: str) -> BaseStage | None:
        return self._stages.get(name)

    def get_or_raise(self, name: str) -> BaseStage:
        stage = self._stages.get(name)
        if stage is None:
            raise RegistryError(f"Stage '{name}' not found in registry")
        return stage

    def missing(self) -> list[str]:
        """Declared stage ids with no registered strategy."""
        return [
            s for s in DECLARED_ORDER if s not in INLINE_STAGES and s not in self._stages
        ]


def build_default_registry(settings: Settings) -> StageRegistry:
    """Register the built-in strategy for every declared stage."""
    from buildcheck.pipeline.stages.ai_estimate import AIEstimateStage
    from buildcheck.pipeline.stages.ai_sequence import AISequenceStage
    from buildcheck.pipeline.stages.analyze import AnalyzeStage
    from buildcheck.pipeline.stages.estimate import EstimateStage
    from buildcheck.pipeline.stages.export import ExportStage
    from buildcheck.pipeline.stages.parse_boq import ParseBoqStage
    from buildcheck.pipeline.stages.parse_ifc import ParseIfcStage
    from buildcheck.pipeline.stages.parse_pdf import ParsePdfStage
    from buildcheck.pipeline.stages.reconcile import ReconcileStage
    from buildcheck.pipeline.stages.schedule import ScheduleStage

    registry = StageRegistry([
        ParseIfcStage(),
        AISequenceStage(),
        ParseBoqStage(),
        ParsePdfStage(),
        AnalyzeStage(settings),
        AIEstimateStage(),
        EstimateStage(settings),
        ReconcileStage(),
        ScheduleStage(settings),
        ExportStage(),
    ])
    logger.debug("Stage registry: %s", ", ".join(registry.stage_names))
    return registry
