"""
Mock adapter — universal test double for the sequencer.

Simulates a tool category without touching the machine. Steps can be
marked as already present or as failing; every check and install is
logged so tests can assert what ran and in which order.
"""

from __future__ import annotations

from newmachine.adapters.base import Adapter
from newmachine.core.context import ProvisionContext
from newmachine.core.models.receipt import Receipt
from newmachine.core.models.step import Probe, Step


class MockAdapter(Adapter):
    """Universal mock adapter for testing.

    By default nothing is present and every install succeeds. A
    successful install marks the step present, so a second run over
    the same mock sees everything installed.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        present: set[str] | None = None,
    ):
        super().__init__()
        self._name = adapter_name
        self._available = available
        self._present: set[str] = set(present or ())
        self._failures: dict[str, str] = {}
        self._raises: set[str] = set()
        self.check_log: list[str] = []
        self.install_log: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    def is_available(self, context: ProvisionContext) -> bool:
        return self._available

    def set_present(self, step_id: str) -> None:
        self._present.add(step_id)

    def set_failure(self, step_id: str, error: str = "Mock failure") -> None:
        """Configure a specific step's install to fail."""
        self._failures[step_id] = error

    def set_raises(self, step_id: str) -> None:
        """Configure a specific step's install to raise (adapter bug)."""
        self._raises.add(step_id)

    def validate(self, step: Step) -> tuple[bool, str]:
        return True, ""

    def check(self, step: Step, context: ProvisionContext) -> Probe:
        self.check_log.append(step.id)
        if step.id in self._present:
            return Probe.present("custom", detail="[mock] present")
        return Probe.missing()

    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        self.install_log.append(step.id)
        if step.id in self._raises:
            raise RuntimeError(f"[mock] {step.id} blew up")
        if step.id in self._failures:
            return self._failure(step, self._failures[step.id])
        self._present.add(step.id)
        return self._success(step, "[mock] installed", mock=True)

    def reset(self) -> None:
        """Clear call logs, failures and presence."""
        self.check_log.clear()
        self.install_log.clear()
        self._failures.clear()
        self._raises.clear()
        self._present.clear()
