"""
Script installer adapter — tools shipped as ``curl … | sh`` installers.

Homebrew, mise, chezmoi and oh-my-zsh all install by downloading a
shell script and running it. This adapter runs that pattern, then
puts the tool's directories on the run's PATH so later steps can
use it right away.
"""

from __future__ import annotations

import logging
import shlex

from newmachine.adapters.base import Adapter
from newmachine.core.context import ProvisionContext
from newmachine.core.models.receipt import Receipt
from newmachine.core.models.step import Probe, Step
from newmachine.core.services.presence import probe_presence

logger = logging.getLogger(__name__)


def installer_command(url: str, shell: str = "sh", args: list[str] | None = None) -> list[str]:
    """Build the argv that downloads ``url`` and runs it with ``shell``.

    A failed download fails the command instead of running an empty
    script.
    """
    quoted_args = " ".join(shlex.quote(a) for a in (args or []))
    script = (
        f'script="$(curl -fsSL {shlex.quote(url)})" || exit 1; '
        f'{shell} -c "$script" {quoted_args}'
    ).rstrip()
    return [shell, "-c", script]


class ScriptInstallerAdapter(Adapter):
    """Install a tool by running its upstream install script.

    Step params:
        url (str): Installer script URL.
        shell (str): Interpreter for the script (default: 'sh').
        args (list[str]): Arguments after the script ($0 first).
        paths (list[str]): Fixed install locations for the presence check.
        path_kind (str): 'exec' (default) or 'dir'.
        command (str): Command name for the PATH lookup.
        version_cmd (list[str]): Version flag invocation.
        post_path (list[str]): Directories to prepend to PATH after install.
        verify_command (str): Must resolve on PATH after install.
        verify_error (str): Error when ``verify_command`` is not found.
    """

    @property
    def name(self) -> str:
        return "script"

    def is_available(self, context: ProvisionContext) -> bool:
        return context.which("curl") is not None

    def validate(self, step: Step) -> tuple[bool, str]:
        if not step.params.get("url"):
            return False, "Missing required param: 'url'"
        params = step.params
        if not any(params.get(k) for k in ("paths", "command", "version_cmd")):
            return False, "Missing presence check: one of 'paths', 'command', 'version_cmd'"
        return True, ""

    def check(self, step: Step, context: ProvisionContext) -> Probe:
        return probe_presence(
            context,
            self._run,
            paths=self._paths(step, context),
            path_kind=step.params.get("path_kind", "exec"),
            command=step.params.get("command"),
            version_cmd=step.params.get("version_cmd"),
        )

    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        argv = installer_command(
            step.params["url"],
            shell=step.params.get("shell", "sh"),
            args=step.params.get("args"),
        )
        result = self._run(argv, context, capture=False)
        if not result.ok:
            return self._failure(step, f"Failed to install {step.label}: {result.error}")

        for directory in self._post_path(step, context):
            context.prepend_path(directory)

        verify = step.params.get("verify_command")
        if verify and context.which(verify) is None:
            return self._failure(
                step,
                step.params.get("verify_error")
                or f"{step.label} installed but '{verify}' is not on PATH",
            )

        return self._success(step, f"{step.label} installed")

    # ── Hooks for subclasses ────────────────────────────────────

    def _paths(self, step: Step, context: ProvisionContext) -> list[str]:
        return list(step.params.get("paths", ()))

    def _post_path(self, step: Step, context: ProvisionContext) -> list[str]:
        return [str(context.expand(p)) for p in step.params.get("post_path", ())]
