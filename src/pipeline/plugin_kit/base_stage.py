# src/pipeline/plugin_kit/base_stage.py — v1
"""Standard stage interface for pipeline plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod

from buildcheck.pipeline.plugin_kit.models import StageContext, StageOutput


class BaseStage(ABC):
    """One named unit of pipeline work.

    Stages never raise for "no applicable input": they return
    ``StageOutput.skip(reason)``. Any other exception is a soft failure
    recorded by the orchestrator.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Stage id from config.stages (e.g. 'parse_ifc')."""

    @property
    def description(self) -> str:
        return ""

    @property
    def requires(self) -> tuple[str, ...]:
        """Upstream artifact names this stage reads."""
        return ()

    @property
    def uses_llm(self) -> bool:
        return False

    @abstractmethod
    async def execute(self, ctx: StageContext) -> StageOutput:
        """Run the stage against the current project snapshot."""
