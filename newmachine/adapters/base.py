"""
Adapter base — the contract between the sequencer and external tools.

Each adapter covers one category of external tool (apt, Homebrew,
mise, a curl-pipe installer, ...) through a narrow interface:
check whether a step's target is present, install it, report its
version. The sequencer only talks to adapters through the registry,
never to the tools themselves.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from newmachine.adapters.shell.command import CommandResult, Runner, run_command
from newmachine.core.context import ProvisionContext
from newmachine.core.models.receipt import Receipt
from newmachine.core.models.step import Probe, Step
from newmachine.core.services.presence import read_version


class Adapter(ABC):
    """Abstract base class for all adapters.

    Adapters perform external side effects and return receipts.
    They NEVER raise exceptions — failures are captured in the Receipt.

    To create a new adapter:
        1. Subclass Adapter
        2. Implement name, is_available, validate, check, install
        3. Register it in the AdapterRegistry (see ``build_registry``)
    """

    def __init__(self, runner: Runner = run_command) -> None:
        self._run = runner

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier used in ``Step.adapter``."""

    @abstractmethod
    def is_available(self, context: ProvisionContext) -> bool:
        """Whether the underlying tool can be driven on this machine.

        Should be fast and never raise.
        """

    @abstractmethod
    def validate(self, step: Step) -> tuple[bool, str]:
        """Check that the step carries the params this adapter needs.

        Returns:
            (is_valid, error_message). error_message is empty if valid.
        """

    @abstractmethod
    def check(self, step: Step, context: ProvisionContext) -> Probe:
        """Presence check. Side-effect free."""

    @abstractmethod
    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        """Install the step's target and return a receipt.

        MUST never raise. Failures are a Receipt with status='failed'.
        """

    def version(self, step: Step, context: ProvisionContext) -> str | None:
        """Installed version, when the step names a ``version_cmd``."""
        argv = step.params.get("version_cmd")
        if not argv:
            return None
        return read_version(context, self._run, argv)

    # ── Receipt helpers ─────────────────────────────────────────

    def _success(self, step: Step, output: str = "", **metadata) -> Receipt:
        return Receipt.success(
            adapter=self.name, step_id=step.id, output=output, metadata=metadata,
        )

    def _failure(self, step: Step, error: str, **metadata) -> Receipt:
        return Receipt.failure(
            adapter=self.name, step_id=step.id, error=error, metadata=metadata,
        )

    def _from_result(self, step: Step, result: CommandResult, output: str = "") -> Receipt:
        """Map a command's exit status onto a receipt."""
        if result.ok:
            return Receipt.success(
                adapter=self.name,
                step_id=step.id,
                output=output or result.stdout.strip(),
                duration_ms=result.elapsed_ms,
                metadata={"return_code": result.returncode},
            )
        return Receipt.failure(
            adapter=self.name,
            step_id=step.id,
            error=result.error,
            duration_ms=result.elapsed_ms,
            metadata={"return_code": result.returncode},
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
