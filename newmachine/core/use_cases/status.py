"""
Status and plan use cases — look, don't touch.

``get_status`` runs every presence check of a profile and reports
versions, without installing anything. ``get_plan`` lists the steps a
run would walk through.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from newmachine.adapters.registry import AdapterRegistry
from newmachine.core.context import ProvisionContext
from newmachine.core.models.step import Step
from newmachine.core.use_cases.provision import build_registry, select_profile
from newmachine.profiles import Profile


@dataclass
class StepStatus:
    step: Step
    present: bool
    via: str = "none"
    detail: str = ""
    version: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.step.id,
            "label": self.step.label,
            "category": self.step.category,
            "present": self.present,
            "via": self.via,
            "detail": self.detail,
            "version": self.version,
        }


@dataclass
class StatusResult:
    """Presence of every step in a profile."""

    profile: Profile | None = None
    steps: list[StepStatus] = field(default_factory=list)
    adapters: dict[str, bool] = field(default_factory=dict)  # name → can run here
    error: str | None = None

    @property
    def present_count(self) -> int:
        return sum(1 for s in self.steps if s.present)

    @property
    def missing_count(self) -> int:
        return len(self.steps) - self.present_count

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        result["profile"] = self.profile.name if self.profile else ""
        result["present"] = self.present_count
        result["missing"] = self.missing_count
        result["adapters"] = dict(self.adapters)
        result["steps"] = [s.to_dict() for s in self.steps]
        return result


def get_status(
    profile_name: str | None = None,
    config_path: Path | None = None,
    context: ProvisionContext | None = None,
    registry: AdapterRegistry | None = None,
) -> StatusResult:
    """Probe every step of a profile. Never installs.

    Also reports, for each adapter the profile uses, whether its
    underlying tool can run on this machine right now.
    """
    result = StatusResult()
    if context is None:
        context = ProvisionContext.from_environment()

    selection = select_profile(profile_name, config_path, context)
    if selection.error:
        result.error = selection.error
        return result
    result.profile = selection.profile

    if registry is None:
        registry = build_registry()

    availability = registry.adapter_status(context)
    for step in selection.steps:
        if step.adapter not in result.adapters and step.adapter in availability:
            result.adapters[step.adapter] = availability[step.adapter]["available"]

    for step in selection.steps:
        probe = registry.check(step, context)
        version = probe.version
        if probe.satisfied and version is None:
            version = registry.version(step, context)
        result.steps.append(
            StepStatus(
                step=step,
                present=probe.satisfied,
                via=probe.via,
                detail=probe.detail,
                version=version,
            )
        )

    return result


@dataclass
class PlanResult:
    """The ordered steps a run would resolve."""

    profile: Profile | None = None
    steps: list[Step] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        result["profile"] = self.profile.name if self.profile else ""
        result["steps"] = [
            {
                "id": s.id,
                "label": s.label,
                "category": s.category,
                "adapter": s.adapter,
                "classification": s.classification,
                "kind": s.kind,
                "exit_code": s.exit_code,
            }
            for s in self.steps
        ]
        return result


def get_plan(
    profile_name: str | None = None,
    config_path: Path | None = None,
    context: ProvisionContext | None = None,
) -> PlanResult:
    """List a profile's steps with their classification."""
    result = PlanResult()
    if context is None:
        context = ProvisionContext.from_environment()

    selection = select_profile(profile_name, config_path, context)
    if selection.error:
        result.error = selection.error
        return result

    result.profile = selection.profile
    result.steps = selection.steps
    return result
