"""
VS Code adapter — editor extensions through the ``code`` CLI.
"""

from __future__ import annotations

from pathlib import Path

from newmachine.adapters.base import Adapter
from newmachine.core.context import ProvisionContext
from newmachine.core.models.receipt import Receipt
from newmachine.core.models.step import Probe, Step

MACOS_CODE_CLI = "/Applications/Visual Studio Code.app/Contents/Resources/app/bin/code"


def find_code(context: ProvisionContext) -> str | None:
    found = context.which("code")
    if found:
        return found
    if context.is_macos and Path(MACOS_CODE_CLI).is_file():
        return MACOS_CODE_CLI
    return None


class VSCodeExtensionAdapter(Adapter):
    """Install one VS Code extension.

    Step params:
        extension (str): Marketplace id, e.g. 'golang.go'.
    """

    @property
    def name(self) -> str:
        return "vscode"

    def is_available(self, context: ProvisionContext) -> bool:
        return find_code(context) is not None

    def validate(self, step: Step) -> tuple[bool, str]:
        if not step.params.get("extension"):
            return False, "Missing required param: 'extension'"
        return True, ""

    def check(self, step: Step, context: ProvisionContext) -> Probe:
        code = find_code(context)
        if code is None:
            return Probe.missing("VS Code CLI not found")

        result = self._run([code, "--list-extensions"], context, capture=True, timeout=60)
        installed = {line.strip().lower() for line in result.stdout.splitlines()}
        extension = step.params["extension"]
        if result.ok and extension.lower() in installed:
            return Probe.present("custom", detail=f"{extension} already installed")
        return Probe.missing()

    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        code = find_code(context)
        if code is None:
            return self._failure(step, "VS Code CLI 'code' not found")

        extension = step.params["extension"]
        result = self._run([code, "--install-extension", extension], context, capture=False)
        if not result.ok:
            return self._failure(step, f"Failed to install extension {extension}: {result.error}")
        return self._success(step, f"{extension} installed")
