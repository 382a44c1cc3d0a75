"""
mise adapter — language runtimes through the mise version manager.

Runtimes are pinned: the presence check looks for the pinned version's
install directory, so a different version on the machine (system Go,
an older Node) does not count. mise itself is re-located on every call
rather than assumed from the bootstrap step, which may have failed.
"""

from __future__ import annotations

import logging
from pathlib import Path

from newmachine.adapters.base import Adapter
from newmachine.core.context import ProvisionContext
from newmachine.core.models.receipt import Receipt
from newmachine.core.models.step import Probe, Step

logger = logging.getLogger(__name__)


def mise_data_dir(context: ProvisionContext) -> Path:
    explicit = context.env.get("MISE_DATA_DIR")
    if explicit:
        return Path(explicit)
    return Path(context.home) / ".local" / "share" / "mise"


def find_mise(context: ProvisionContext) -> str | None:
    """The mise binary: the installer's fixed location, then PATH."""
    fixed = context.local_bin / "mise"
    if fixed.is_file():
        return str(fixed)
    return context.which("mise")


class MiseRuntimeAdapter(Adapter):
    """Install a runtime globally with ``mise use --global tool@version``.

    Step params:
        tool (str): mise tool name, e.g. 'go', 'node', 'python'.
        version (str): Version pin, e.g. '1.24.4' or '3.12'.
        version_cmd (list[str]): Version flag invocation for reporting.
    """

    @property
    def name(self) -> str:
        return "mise"

    def is_available(self, context: ProvisionContext) -> bool:
        return find_mise(context) is not None

    def validate(self, step: Step) -> tuple[bool, str]:
        for key in ("tool", "version"):
            if not step.params.get(key):
                return False, f"Missing required param: '{key}'"
        return True, ""

    def check(self, step: Step, context: ProvisionContext) -> Probe:
        tool, version = step.params["tool"], step.params["version"]
        install_dir = mise_data_dir(context) / "installs" / tool / version
        if install_dir.is_dir():
            return Probe.present("path", detail=str(install_dir), version=version)

        mise = find_mise(context)
        if mise is None:
            return Probe.missing("mise not found")

        result = self._run([mise, "where", f"{tool}@{version}"], context, capture=True, timeout=30)
        if result.ok and result.stdout.strip():
            return Probe.present("custom", detail=result.stdout.strip(), version=version)
        return Probe.missing()

    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        tool, version = step.params["tool"], step.params["version"]
        mise = find_mise(context)
        if mise is None:
            return self._failure(step, "mise not found")

        result = self._run([mise, "use", "--global", f"{tool}@{version}"], context, capture=False)
        if not result.ok:
            return self._failure(step, f"Failed to install {step.label}: {result.error}")

        context.prepend_path(mise_data_dir(context) / "shims")
        return self._success(step, f"{tool} {version} installed via mise")
