"""
Dotfiles adapter — initialise a chezmoi source repository.
"""

from __future__ import annotations

from pathlib import Path

from newmachine.adapters.base import Adapter
from newmachine.core.context import ProvisionContext
from newmachine.core.models.receipt import Receipt
from newmachine.core.models.step import Probe, Step


def chezmoi_source_dir(context: ProvisionContext) -> Path:
    return Path(context.home) / ".local" / "share" / "chezmoi"


def find_chezmoi(context: ProvisionContext) -> str | None:
    fixed = context.local_bin / "chezmoi"
    if fixed.is_file():
        return str(fixed)
    return context.which("chezmoi")


class DotfilesAdapter(Adapter):
    """Run ``chezmoi init --apply <repo>`` once.

    Step params:
        repo (str): Dotfiles repository URL (HTTPS, so no SSH key is
            needed on a fresh machine).
    """

    @property
    def name(self) -> str:
        return "dotfiles"

    def is_available(self, context: ProvisionContext) -> bool:
        return find_chezmoi(context) is not None

    def validate(self, step: Step) -> tuple[bool, str]:
        if not step.params.get("repo"):
            return False, "Missing required param: 'repo'"
        return True, ""

    def check(self, step: Step, context: ProvisionContext) -> Probe:
        source = chezmoi_source_dir(context)
        if (source / ".git").is_dir():
            return Probe.present("path", detail=f"chezmoi already initialized at {source}")
        return Probe.missing()

    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        chezmoi = find_chezmoi(context)
        if chezmoi is None:
            return self._failure(step, "chezmoi not found")

        repo = step.params["repo"]
        result = self._run([chezmoi, "init", "--apply", repo], context, capture=False)
        if not result.ok:
            return self._failure(step, f"Could not initialize chezmoi: {result.error}")
        return self._success(step, f"Dotfiles applied from {repo}")
