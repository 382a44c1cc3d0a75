"""
Sequencer — the provisioning loop.

Takes the ordered steps of a profile and resolves them one at a time:
check presence, install if missing, and decide from the step's
classification whether a failed install halts the run or becomes a
warning. Collects a StepOutcome per step into a RunReport.

Flow:
    step → check → (present: skipped) | install → installed
                                                 | failed_recoverable → next step
                                                 | failed_fatal → halt

Steps run strictly in order, never in parallel: later steps read the
PATH and files that earlier steps left behind.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from newmachine.adapters.registry import AdapterRegistry
from newmachine.core.context import ProvisionContext
from newmachine.core.models.step import Step, StepOutcome

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[StepOutcome], None]


@dataclass
class RunReport:
    """Ordered outcomes of one provisioning run."""

    profile: str = ""
    outcomes: list[StepOutcome] = field(default_factory=list)
    halted_at: str | None = None
    exit_code: int = 0

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def installed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "installed")

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "skipped")

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.failed)

    @property
    def halted(self) -> bool:
        return self.halted_at is not None

    @property
    def status(self) -> str:
        if self.halted:
            return "halted"
        if self.failed:
            return "partial"
        return "ok"

    def by_category(self) -> dict[str, list[StepOutcome]]:
        """Outcomes grouped by step category, in first-seen order."""
        groups: dict[str, list[StepOutcome]] = {}
        for outcome in self.outcomes:
            groups.setdefault(outcome.category, []).append(outcome)
        return groups

    def to_dict(self) -> dict:
        return {
            "profile": self.profile,
            "status": self.status,
            "exit_code": self.exit_code,
            "halted_at": self.halted_at,
            "total": self.total,
            "installed": self.installed,
            "skipped": self.skipped,
            "failed": self.failed,
            "outcomes": [o.model_dump(mode="json") for o in self.outcomes],
        }


def run_steps(
    steps: Sequence[Step],
    registry: AdapterRegistry,
    context: ProvisionContext,
    *,
    profile: str = "",
    on_outcome: OutcomeCallback | None = None,
) -> RunReport:
    """Resolve every step in order and return the report.

    Args:
        steps: Steps in declaration order.
        registry: Adapter registry for dispatch.
        context: Shared, mutable run context.
        profile: Profile name, recorded on the report.
        on_outcome: Called as each step resolves (progress output).

    Returns:
        RunReport. ``exit_code`` is the fatal step's code when the run
        halted, else 0.
    """
    report = RunReport(profile=profile)

    for step in steps:
        outcome = _resolve_step(step, registry, context)
        report.outcomes.append(outcome)

        if on_outcome is not None:
            on_outcome(outcome)

        if outcome.status == "failed_fatal":
            report.halted_at = step.id
            report.exit_code = step.exit_code
            logger.info("Halting at %s (exit %d): %s", step.id, step.exit_code, outcome.error)
            break

    logger.info(
        "Run %s: %d installed, %d present, %d failed",
        report.status, report.installed, report.skipped, report.failed,
    )
    return report


def _resolve_step(
    step: Step,
    registry: AdapterRegistry,
    context: ProvisionContext,
) -> StepOutcome:
    """Check, then install at most once."""
    probe = registry.check(step, context)
    if probe.satisfied:
        logger.debug("⊘ %s already present (%s: %s)", step.id, probe.via, probe.detail)
        return StepOutcome(
            step_id=step.id,
            label=step.label,
            category=step.category,
            status="skipped",
            detail=probe.detail,
        )

    logger.debug("Installing %s via %s", step.id, step.adapter)
    receipt = registry.install(step, context)

    if receipt.ok:
        logger.info("✓ %s installed", step.id)
        return StepOutcome(
            step_id=step.id,
            label=step.label,
            category=step.category,
            status="installed",
            detail=receipt.output,
            notes=receipt.notes,
            duration_ms=receipt.duration_ms,
        )

    if step.fatal:
        return StepOutcome(
            step_id=step.id,
            label=step.label,
            category=step.category,
            status="failed_fatal",
            error=receipt.error,
            remedy=step.remedy,
            notes=receipt.notes,
            duration_ms=receipt.duration_ms,
        )

    logger.info("✗ %s failed (%s), continuing: %s", step.id, step.kind, receipt.error)
    return StepOutcome(
        step_id=step.id,
        label=step.label,
        category=step.category,
        status="failed_recoverable",
        error=receipt.error,
        notes=receipt.notes,
        duration_ms=receipt.duration_ms,
    )
