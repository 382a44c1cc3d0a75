"""
Account adapters — login shell and group membership.

Both change the invoking user's account and only take effect in a new
login session, so success receipts carry a note saying so.
"""

from __future__ import annotations

import os
from pathlib import Path

from newmachine.adapters.base import Adapter
from newmachine.core.context import ProvisionContext
from newmachine.core.models.receipt import Receipt
from newmachine.core.models.step import Probe, Step


class LoginShellAdapter(Adapter):
    """Make a shell the default login shell.

    Step params:
        shell (str): Shell name, e.g. 'zsh'.
        path (str): Absolute path of the shell binary, e.g. '/bin/zsh'.
    """

    @property
    def name(self) -> str:
        return "login_shell"

    def is_available(self, context: ProvisionContext) -> bool:
        return context.which("chsh") is not None

    def validate(self, step: Step) -> tuple[bool, str]:
        for key in ("shell", "path"):
            if not step.params.get(key):
                return False, f"Missing required param: '{key}'"
        return True, ""

    def check(self, step: Step, context: ProvisionContext) -> Probe:
        if context.shell == step.params["shell"]:
            return Probe.present("custom", detail=f"Already using {context.shell}")
        return Probe.missing(f"Current shell: {context.shell or 'unknown'}")

    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        shell, path = step.params["shell"], step.params["path"]
        if not (Path(path).is_file() and os.access(path, os.X_OK)):
            return self._failure(step, f"{shell} not found at {path}")

        result = self._run(["chsh", "-s", path], context, capture=False)
        if not result.ok:
            return self._failure(
                step, f"Could not change shell automatically. Run manually: chsh -s {path}",
            )
        context.env["SHELL"] = path
        return self._success(
            step,
            f"Default shell changed to {shell}",
            notes=[f"Default shell changed to {shell} (takes effect in a new terminal)"],
        )


class GroupMembershipAdapter(Adapter):
    """Add the invoking user to a system group.

    Step params:
        group (str): Group name, e.g. 'docker'.
        user (str): Account to add (default: the context's user).
    """

    @property
    def name(self) -> str:
        return "group"

    def is_available(self, context: ProvisionContext) -> bool:
        return context.which("usermod") is not None

    def validate(self, step: Step) -> tuple[bool, str]:
        if not step.params.get("group"):
            return False, "Missing required param: 'group'"
        return True, ""

    def check(self, step: Step, context: ProvisionContext) -> Probe:
        group = step.params["group"]
        user = step.params.get("user") or context.user
        result = self._run(["id", "-nG", user], context, capture=True, timeout=30)
        if result.ok and group in result.stdout.split():
            return Probe.present("custom", detail=f"{user} is in the {group} group")
        return Probe.missing()

    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        group = step.params["group"]
        user = step.params.get("user") or context.user
        result = self._run(["usermod", "-aG", group, user], context, sudo=True)
        if not result.ok:
            return self._failure(step, f"Could not add {user} to {group}: {result.error}")
        return self._success(
            step,
            f"Added {user} to the {group} group",
            notes=[f"Added {user} to {group} group. Log out/in (or reboot) for this to take effect."],
        )
