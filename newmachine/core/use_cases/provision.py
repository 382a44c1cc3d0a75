"""
Provision use case — resolve a profile and run it.

This is the top-level orchestrator: it loads the machine config,
picks the profile, builds its steps, wires up the adapters and hands
everything to the sequencer. The CLI only renders what comes back.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from newmachine.adapters.registry import AdapterRegistry
from newmachine.adapters.shell.command import Runner, run_command
from newmachine.core.config.loader import ConfigError, load_config
from newmachine.core.context import ProvisionContext
from newmachine.core.engine.sequencer import OutcomeCallback, RunReport, run_steps
from newmachine.core.models.config import MachineConfig
from newmachine.core.models.step import Step
from newmachine.profiles import Profile, detect_profile, get_profile

logger = logging.getLogger(__name__)

EXIT_CONFIG_ERROR = 1


def build_registry(runner: Runner = run_command) -> AdapterRegistry:
    """Registry with every production adapter, all sharing ``runner``."""
    from newmachine.adapters.editors.vscode import VSCodeExtensionAdapter
    from newmachine.adapters.installers.script import ScriptInstallerAdapter
    from newmachine.adapters.languages.go import GoInstallAdapter
    from newmachine.adapters.languages.mise import MiseRuntimeAdapter
    from newmachine.adapters.packages.apt import AptPackageAdapter, AptRepoAdapter
    from newmachine.adapters.packages.homebrew import BrewFormulaAdapter, HomebrewAdapter
    from newmachine.adapters.shell.rc_file import RcBlockAdapter
    from newmachine.adapters.system.accounts import GroupMembershipAdapter, LoginShellAdapter
    from newmachine.adapters.system.precondition import PreconditionAdapter
    from newmachine.adapters.vcs.chezmoi import DotfilesAdapter
    from newmachine.adapters.vcs.git import GitConfigAdapter

    registry = AdapterRegistry()
    for adapter_cls in (
        PreconditionAdapter,
        ScriptInstallerAdapter,
        HomebrewAdapter,
        BrewFormulaAdapter,
        AptPackageAdapter,
        AptRepoAdapter,
        LoginShellAdapter,
        GroupMembershipAdapter,
        MiseRuntimeAdapter,
        GoInstallAdapter,
        RcBlockAdapter,
        GitConfigAdapter,
        DotfilesAdapter,
        VSCodeExtensionAdapter,
    ):
        registry.register(adapter_cls(runner))
    return registry


@dataclass
class ProfileSelection:
    """A profile with its config and built steps, or the reason there is none."""

    profile: Profile | None = None
    config: MachineConfig | None = None
    steps: list[Step] = field(default_factory=list)
    error: str | None = None


def select_profile(
    profile_name: str | None,
    config_path: Path | None,
    context: ProvisionContext,
) -> ProfileSelection:
    """Load config, pick the profile (explicit or detected), build its steps."""
    selection = ProfileSelection()

    try:
        selection.config = load_config(config_path)
    except ConfigError as e:
        selection.error = str(e)
        return selection

    try:
        profile = get_profile(profile_name) if profile_name else detect_profile(context)
        selection.steps = profile.steps(selection.config, context)
    except ValueError as e:
        selection.error = str(e)
        return selection

    selection.profile = profile
    logger.debug("Profile %s: %d steps", profile.name, len(selection.steps))
    return selection


@dataclass
class ProvisionResult:
    """Result of one provisioning run."""

    profile: Profile | None = None
    report: RunReport | None = None
    steps_planned: int = 0
    error: str | None = None

    @property
    def exit_code(self) -> int:
        if self.error:
            return EXIT_CONFIG_ERROR
        return self.report.exit_code if self.report else 0

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            result["exit_code"] = self.exit_code
            return result

        result["profile"] = self.profile.name if self.profile else ""
        result["steps_planned"] = self.steps_planned
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def run_provision(
    profile_name: str | None = None,
    config_path: Path | None = None,
    context: ProvisionContext | None = None,
    registry: AdapterRegistry | None = None,
    on_start: Callable[[Profile, int], None] | None = None,
    on_outcome: OutcomeCallback | None = None,
) -> ProvisionResult:
    """Provision this machine with a profile.

    Args:
        profile_name: 'macos' or 'server'. None = detect from the OS.
        config_path: Optional explicit path to machine.yml.
        context: Run context. None = snapshot of the current process.
        registry: Optional pre-configured adapter registry.
        on_start: Called with the profile and step count before the
            first step runs (header output).
        on_outcome: Progress callback, called as each step resolves.

    Returns:
        ProvisionResult with the run report.
    """
    result = ProvisionResult()
    if context is None:
        context = ProvisionContext.from_environment()

    selection = select_profile(profile_name, config_path, context)
    if selection.error:
        result.error = selection.error
        return result

    profile = selection.profile
    assert profile is not None
    result.profile = profile
    result.steps_planned = len(selection.steps)

    if registry is None:
        registry = build_registry()

    if on_start is not None:
        on_start(profile, result.steps_planned)

    result.report = run_steps(
        selection.steps,
        registry,
        context,
        profile=profile.name,
        on_outcome=on_outcome,
    )
    return result
