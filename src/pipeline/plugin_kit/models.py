# src/pipeline/plugin_kit/models.py — v2
"""Stage plugin models: StageContext (input) and StageOutput (result)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Coroutine, Mapping

from buildcheck.core.models import ClassifiedFiles, PipelineOptions, ProjectRecord
from buildcheck.llm.models import TokenUsage

if TYPE_CHECKING:
    from buildcheck.config.settings import Settings
    from buildcheck.llm.base_client import BaseLLMClient
    from buildcheck.llm.cancellation import CancellationToken
    from buildcheck.tracking.call_logger import CallLogger

PartialReporter = Callable[[float, str], Awaitable[None]]


async def _no_progress(fraction: float, message: str) -> None:
    return None


@dataclass
class StageContext:
    """Everything a stage may read.

    ``project`` is a private copy: mutating it has no effect unless the stage
    returns it in its output. ``artifacts`` holds only the upstream artifacts
    the stage declared in ``requires``.
    """

    stage_id: str
    project: ProjectRecord
    files: ClassifiedFiles
    options: PipelineOptions
    settings: Settings
    artifacts: Mapping[str, Any] = field(default_factory=dict)
    llm: BaseLLMClient | None = None
    call_logger: CallLogger | None = None
    cancel: CancellationToken | None = None
    report_partial: PartialReporter = _no_progress

    @property
    def depth(self) -> str:
        return self.options.analysis_depth

    def artifact(self, name: str, default: Any = None) -> Any:
        value = self.artifacts.get(name)
        return default if value is None else value


@dataclass
class StageOutput:
    """What a stage hands back to the orchestrator.

    Attributes:
        project: Replacement project record, or None to leave it unchanged.
        artifacts: Named artifacts merged into the run (names match
            PipelineResult fields).
        warnings: Non-fatal issues to append to the run's warnings log.
        skipped: True when the stage had no applicable input.
        background: Artifact name -> coroutine to run as a background task;
            joined before the run returns.
    """

    project: ProjectRecord | None = None
    artifacts: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    skipped: bool = False
    skip_reason: str = ""
    token_usage: TokenUsage = field(default_factory=TokenUsage)
    background: dict[str, Coroutine[Any, Any, Any]] = field(default_factory=dict)

    @classmethod
    def skip(cls, reason: str) -> StageOutput:
        return cls(skipped=True, skip_reason=reason)
