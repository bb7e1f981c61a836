# src/pipeline/state.py — v2
"""Mutable state of one pipeline run, owned by the orchestrator."""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any

from buildcheck.core.models import ClassifiedFiles, ProjectRecord
from buildcheck.llm.models import TokenUsage
from buildcheck.pipeline.plugin_kit.models import StageOutput


@dataclass
class RunState:
    """Project record, artifacts, warnings and background task handles.

    Only the orchestrator writes here. Stages see copies through
    StageContext and hand changes back as StageOutput.
    """

    project: ProjectRecord
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    files: ClassifiedFiles = field(default_factory=ClassifiedFiles)
    artifacts: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    stage_usage: dict[str, TokenUsage] = field(default_factory=dict)
    background: dict[str, asyncio.Task[Any]] = field(default_factory=dict)

    def artifacts_for(self, names: tuple[str, ...]) -> dict[str, Any]:
        return {name: self.artifacts[name] for name in names if name in self.artifacts}

    def apply(self, stage_id: str, output: StageOutput) -> None:
        """Merge a stage's output. The project is replaced whole, never patched."""
        if output.project is not None:
            self.project = output.project
        self.artifacts.update(output.artifacts)
        self.warnings.extend(output.warnings)
        if output.token_usage.total:
            self.stage_usage[stage_id] = output.token_usage
