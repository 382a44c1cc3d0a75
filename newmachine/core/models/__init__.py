"""
Domain models — Pydantic types for the provisioner.

    from newmachine.core.models import Step, StepOutcome, Probe, Receipt, MachineConfig
"""

from newmachine.core.models.config import MachineConfig
from newmachine.core.models.receipt import Receipt
from newmachine.core.models.step import Probe, Step, StepOutcome

__all__ = [
    "MachineConfig",
    "Probe",
    "Receipt",
    "Step",
    "StepOutcome",
]
