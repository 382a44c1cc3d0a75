"""
Precondition adapter — things the run cannot fix by itself.

Wrong operating system, missing platform toolchain (Xcode Command
Line Tools, apt). The check is a normal presence probe; the "install"
always fails with a message, and the step's remedy tells the operator
what to run by hand.
"""

from __future__ import annotations

from newmachine.adapters.base import Adapter
from newmachine.core.context import ProvisionContext
from newmachine.core.models.receipt import Receipt
from newmachine.core.models.step import Probe, Step
from newmachine.core.services.presence import probe_presence


class PreconditionAdapter(Adapter):
    """Verify a platform fact. Cannot install anything.

    Step params:
        os (str): Required ``platform.system()`` value, e.g. 'Linux'.
        command (str): Required command on PATH (alternative to ``os``).
        paths (list[str]): Fixed locations checked before ``command``.
        probe (list[str]): argv whose success proves presence.
        message (str): Error reported when the precondition is not met.
    """

    @property
    def name(self) -> str:
        return "precondition"

    def is_available(self, context: ProvisionContext) -> bool:
        return True

    def validate(self, step: Step) -> tuple[bool, str]:
        params = step.params
        if not any(params.get(k) for k in ("os", "command", "paths", "probe")):
            return False, "Missing required param: one of 'os', 'command', 'paths', 'probe'"
        return True, ""

    def check(self, step: Step, context: ProvisionContext) -> Probe:
        wanted_os = step.params.get("os")
        if wanted_os:
            if context.system == wanted_os:
                return Probe.present("custom", detail=f"Running on {context.system}")
            return Probe.missing(f"Running on {context.system or 'unknown'}")

        probe = probe_presence(
            context,
            self._run,
            paths=step.params.get("paths", ()),
            command=step.params.get("command"),
            version_cmd=step.params.get("probe"),
        )
        return probe

    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        message = step.params.get("message") or f"Precondition not met: {step.label}"
        return self._failure(step, message)
