"""
Homebrew adapters — bootstrap Homebrew, then install formulae with it.

Homebrew lives under ``/opt/homebrew`` on Apple silicon and
``/usr/local`` on Intel Macs. The prefix is resolved when it is
needed, not when the profile is built, because on a fresh machine it
only exists after the bootstrap step ran.
"""

from __future__ import annotations

import logging
from pathlib import Path

from newmachine.adapters.base import Adapter
from newmachine.adapters.installers.script import ScriptInstallerAdapter
from newmachine.core.context import ProvisionContext
from newmachine.core.models.receipt import Receipt
from newmachine.core.models.step import Probe, Step
from newmachine.core.services.presence import probe_presence

logger = logging.getLogger(__name__)

APPLE_SILICON_PREFIX = "/opt/homebrew"
INTEL_PREFIX = "/usr/local"


def brew_prefix(context: ProvisionContext) -> str:
    """Homebrew prefix: ``$HOMEBREW_PREFIX``, else by directory layout."""
    explicit = context.env.get("HOMEBREW_PREFIX")
    if explicit:
        return explicit
    if Path(APPLE_SILICON_PREFIX).is_dir():
        return APPLE_SILICON_PREFIX
    return INTEL_PREFIX


class HomebrewAdapter(ScriptInstallerAdapter):
    """Bootstrap Homebrew itself.

    Same as the script installer, with the brew binary under either
    prefix as the fixed-path check and the resolved prefix's bin/sbin
    put on PATH after install (what ``brew shellenv`` does).
    """

    @property
    def name(self) -> str:
        return "homebrew"

    def _paths(self, step: Step, context: ProvisionContext) -> list[str]:
        explicit = context.env.get("HOMEBREW_PREFIX")
        prefixes = [explicit] if explicit else [APPLE_SILICON_PREFIX, INTEL_PREFIX]
        return [f"{p}/bin/brew" for p in prefixes]

    def _post_path(self, step: Step, context: ProvisionContext) -> list[str]:
        prefix = brew_prefix(context)
        # prepend_path puts the last one first
        return [f"{prefix}/sbin", f"{prefix}/bin"]

    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        receipt = super().install(step, context)
        if receipt.ok:
            context.env.setdefault("HOMEBREW_PREFIX", brew_prefix(context))
        return receipt


class BrewFormulaAdapter(Adapter):
    """Install one Homebrew formula.

    Step params:
        formula (str): Formula name, e.g. 'git'.
        binary (str): Executable the formula provides (default: formula).
        lookup (bool): Also accept the binary anywhere on PATH
            (default: False, since macOS ships stubs like /usr/bin/git).
    """

    @property
    def name(self) -> str:
        return "brew"

    def is_available(self, context: ProvisionContext) -> bool:
        return self._brew(context) is not None

    def validate(self, step: Step) -> tuple[bool, str]:
        if not step.params.get("formula"):
            return False, "Missing required param: 'formula'"
        return True, ""

    def check(self, step: Step, context: ProvisionContext) -> Probe:
        binary = step.params.get("binary") or step.params["formula"]
        prefix = brew_prefix(context)
        return probe_presence(
            context,
            self._run,
            paths=[f"{prefix}/bin/{binary}"],
            command=binary if step.params.get("lookup") else None,
        )

    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        brew = self._brew(context)
        if brew is None:
            return self._failure(step, "Homebrew not found")

        formula = step.params["formula"]
        result = self._run([brew, "install", formula], context, capture=False)
        if not result.ok:
            return self._failure(step, f"Failed to install {formula}: {result.error}")
        return self._success(step, f"{formula} installed via Homebrew")

    def version(self, step: Step, context: ProvisionContext) -> str | None:
        binary = step.params.get("binary") or step.params["formula"]
        prefix = brew_prefix(context)
        if not step.params.get("version_cmd"):
            step = step.model_copy(
                update={"params": {**step.params, "version_cmd": [f"{prefix}/bin/{binary}", "--version"]}}
            )
        return super().version(step, context)

    def _brew(self, context: ProvisionContext) -> str | None:
        candidate = Path(brew_prefix(context)) / "bin" / "brew"
        if candidate.is_file():
            return str(candidate)
        return context.which("brew")
