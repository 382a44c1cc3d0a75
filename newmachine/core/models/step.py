"""
Step models — the unit of a provisioning run.

A Step says "make sure X is present": an adapter name plus params tell
the registry how to check for X and how to install it. The
classification decides what a failed install does to the rest of the
run.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

Classification = Literal["fatal", "recoverable"]

# precondition  → wrong platform / missing prerequisite toolchain
# bootstrap     → the mechanism used to install further tools
# install       → one package or tool
# config_write  → shell startup files, git config
FailureKind = Literal["precondition", "bootstrap", "install", "config_write"]

OutcomeStatus = Literal["skipped", "installed", "failed_recoverable", "failed_fatal"]


class Step(BaseModel):
    """A named, statically defined unit of provisioning work."""

    id: str
    label: str = ""
    category: str = "tools"
    adapter: str
    params: dict[str, Any] = Field(default_factory=dict)

    classification: Classification = "recoverable"
    kind: FailureKind = "install"
    exit_code: int = 0
    remedy: str = ""  # manual command shown when a precondition fails

    @model_validator(mode="after")
    def _fatal_needs_exit_code(self) -> Step:
        if self.classification == "fatal" and self.exit_code == 0:
            raise ValueError(f"fatal step '{self.id}' needs a non-zero exit_code")
        if self.classification == "recoverable" and self.exit_code != 0:
            raise ValueError(f"recoverable step '{self.id}' cannot carry an exit_code")
        if not self.label:
            self.label = self.id
        return self

    @property
    def fatal(self) -> bool:
        return self.classification == "fatal"


class Probe(BaseModel):
    """Result of a presence check."""

    satisfied: bool
    via: Literal["path", "command", "version", "custom", "none"] = "none"
    detail: str = ""
    version: str | None = None

    @classmethod
    def present(cls, via: str, detail: str = "", version: str | None = None) -> Probe:
        return cls(satisfied=True, via=via, detail=detail, version=version)

    @classmethod
    def missing(cls, detail: str = "") -> Probe:
        return cls(satisfied=False, via="none", detail=detail)


class StepOutcome(BaseModel):
    """What happened to one step during a run."""

    step_id: str
    label: str
    category: str
    status: OutcomeStatus
    detail: str = ""
    error: str | None = None
    remedy: str = ""
    notes: list[str] = Field(default_factory=list)
    duration_ms: int = 0

    @property
    def failed(self) -> bool:
        return self.status in ("failed_recoverable", "failed_fatal")
