"""
Go adapter — helper binaries built with ``go install``.
"""

from __future__ import annotations

import logging

from newmachine.adapters.base import Adapter
from newmachine.adapters.languages.mise import mise_data_dir
from newmachine.core.context import ProvisionContext
from newmachine.core.models.receipt import Receipt
from newmachine.core.models.step import Probe, Step
from newmachine.core.services.presence import probe_presence

logger = logging.getLogger(__name__)


def find_go(context: ProvisionContext) -> str | None:
    """The go binary: the mise shim, then PATH."""
    shim = mise_data_dir(context) / "shims" / "go"
    if shim.is_file():
        return str(shim)
    return context.which("go")


class GoInstallAdapter(Adapter):
    """Build a Go tool into ``~/.local/bin``.

    Step params:
        binary (str): Installed executable name, e.g. 'ghq'.
        module (str): ``module@version`` for ``go install``.
    """

    @property
    def name(self) -> str:
        return "go_install"

    def is_available(self, context: ProvisionContext) -> bool:
        return find_go(context) is not None

    def validate(self, step: Step) -> tuple[bool, str]:
        for key in ("binary", "module"):
            if not step.params.get(key):
                return False, f"Missing required param: '{key}'"
        return True, ""

    def check(self, step: Step, context: ProvisionContext) -> Probe:
        binary = step.params["binary"]
        return probe_presence(
            context,
            self._run,
            paths=[str(context.local_bin / binary)],
            command=binary,
        )

    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        binary, module = step.params["binary"], step.params["module"]
        go = find_go(context)
        if go is None:
            return self._failure(step, f"Go not found; skipping {binary} installation")

        try:
            context.local_bin.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return self._failure(step, f"Could not create {context.local_bin}: {e}")

        result = self._run(
            [go, "install", module],
            context,
            capture=False,
            env_overrides={"GOBIN": str(context.local_bin)},
        )
        if not result.ok:
            return self._failure(step, f"Failed to install {binary}: {result.error}")

        context.prepend_path(context.local_bin)
        return self._success(step, f"{binary} installed via go install")
