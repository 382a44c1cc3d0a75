"""
Git config adapter — global git settings that point at a directory.

Used for ``ghq.root``: the directory is created and the global config
key set to it.
"""

from __future__ import annotations

import logging

from newmachine.adapters.base import Adapter
from newmachine.core.context import ProvisionContext
from newmachine.core.models.receipt import Receipt
from newmachine.core.models.step import Probe, Step

logger = logging.getLogger(__name__)


class GitConfigAdapter(Adapter):
    """Ensure ``git config --global <key>`` equals a directory path.

    Step params:
        key (str): Config key, e.g. 'ghq.root'.
        value (str): Directory, ``~`` allowed. Created if missing.
    """

    @property
    def name(self) -> str:
        return "git_config"

    def is_available(self, context: ProvisionContext) -> bool:
        return context.which("git") is not None

    def validate(self, step: Step) -> tuple[bool, str]:
        for key in ("key", "value"):
            if not step.params.get(key):
                return False, f"Missing required param: '{key}'"
        return True, ""

    def check(self, step: Step, context: ProvisionContext) -> Probe:
        target = context.expand(step.params["value"])
        if not target.is_dir():
            return Probe.missing(f"{target} does not exist")
        if context.which("git") is None:
            return Probe.missing("git not found")

        current = self._current(step, context)
        if current == str(target):
            return Probe.present("custom", detail=f"{step.params['key']} already set to {target}")
        return Probe.missing(f"{step.params['key']} is {current or 'unset'}")

    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        key = step.params["key"]
        target = context.expand(step.params["value"])
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return self._failure(step, f"Could not create {target}: {e}")

        if context.which("git") is None:
            return self._failure(step, "git not found")

        result = self._run(["git", "config", "--global", key, str(target)], context)
        if not result.ok:
            return self._failure(step, f"Could not set {key}: {result.error}")
        return self._success(step, f"{key} set to {target}")

    def _current(self, step: Step, context: ProvisionContext) -> str:
        result = self._run(
            ["git", "config", "--global", "--get", step.params["key"]],
            context,
            capture=True,
            timeout=30,
        )
        return result.stdout.strip() if result.ok else ""
