# src/sequencing/loop.py — v1
"""Bounded generate -> validate -> refine loop.

Generate always runs. Validate runs only for deep runs with a non-empty
candidate. Refine runs once, and only when validation produced at least one
error or warning finding. A failed refinement keeps the candidate and
records a warning. Cancellation is never absorbed here: it propagates to
the calling stage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable

from buildcheck.llm.cancellation import LLMCallCancelled
from buildcheck.llm.models import TokenUsage
from buildcheck.sequencing.models import Sequence, ValidationFinding

if TYPE_CHECKING:
    from buildcheck.core.models import ModelElement, ProjectRecord
    from buildcheck.llm.cancellation import CancellationToken
    from buildcheck.sequencing.generator import SequenceGenerator
    from buildcheck.sequencing.refiner import SequenceRefiner
    from buildcheck.sequencing.validator import SequenceValidator

logger = logging.getLogger(__name__)

PhaseCallback = Callable[[float, str], Awaitable[None]]


@dataclass
class RefinementOutcome:
    """Final sequence plus what each phase did."""

    sequence: Sequence
    findings: list[ValidationFinding] = field(default_factory=list)
    validated: bool = False
    refine_attempts: int = 0
    refined: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def token_usage(self) -> TokenUsage:
        return self.sequence.token_usage


class RefinementLoop:
    """Drive the three phases for one eligible run."""

    def __init__(
        self,
        generator: SequenceGenerator,
        validator: SequenceValidator,
        refiner: SequenceRefiner,
    ) -> None:
        self._generator = generator
        self._validator = validator
        self._refiner = refiner

    async def run(
        self,
        elements: list[ModelElement],
        project: ProjectRecord,
        depth: str = "standard",
        context: str | None = None,
        cancel: CancellationToken | None = None,
        on_phase: PhaseCallback | None = None,
    ) -> RefinementOutcome:
        async def phase(fraction: float, message: str) -> None:
            if on_phase is not None:
                await on_phase(fraction, message)

        await phase(0.1, "Generating construction sequence")
        candidate, warnings = await self._generator.generate(
            elements, project, depth=depth, enriched_context=context, cancel=cancel
        )
        outcome = RefinementOutcome(sequence=candidate, warnings=list(warnings))

        if depth != "deep" or not candidate.steps:
            return outcome

        await phase(0.5, "Validating sequence")
        try:
            report = await self._validator.validate(candidate, context or "", cancel=cancel)
        except LLMCallCancelled:
            raise
        except Exception as exc:
            logger.warning("Sequence validation unavailable: %s", exc)
            outcome.warnings.append(f"Sequence validation unavailable: {exc}")
            return outcome

        outcome.validated = True
        outcome.findings = report.findings
        if report.warning:
            outcome.warnings.append(report.warning)
        usage = candidate.token_usage + report.token_usage
        candidate.token_usage = usage

        actionable = report.actionable
        if not actionable:
            logger.info(
                "Sequence approved (%d informational findings)", len(report.findings)
            )
            return outcome

        await phase(0.7, f"Refining sequence ({len(actionable)} findings)")
        # Universe fixed by the candidate, whatever the refinement claims
        universe = candidate.universe
        outcome.refine_attempts = 1
        try:
            refined = await self._refiner.refine(
                candidate, report.findings, context or "", universe, cancel=cancel
            )
        except LLMCallCancelled:
            raise
        except Exception as exc:
            logger.warning("Sequence refinement failed, keeping candidate: %s", exc)
            outcome.warnings.append(
                f"Sequence refinement failed: {exc}. Original sequence kept."
            )
            return outcome

        refined.token_usage = usage + refined.token_usage
        outcome.sequence = refined
        outcome.refined = True
        return outcome
