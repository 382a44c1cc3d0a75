"""
Receipt model — the result contract between adapters and the sequencer.

The sequencer asks an adapter to install a step; the adapter answers
with a Receipt. Never exceptions: a failed install is a Receipt with
status='failed'.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Receipt(BaseModel):
    """Result of an adapter install action.

    ``metadata["notes"]`` carries operator-facing remarks that are worth
    surfacing even on success (e.g. "log out and in again").
    """

    adapter: str
    step_id: str
    status: Literal["ok", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the install action succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the install action failed."""
        return self.status == "failed"

    @property
    def notes(self) -> list[str]:
        return list(self.metadata.get("notes", []))

    @classmethod
    def success(
        cls,
        adapter: str,
        step_id: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(
            adapter=adapter,
            step_id=step_id,
            status="ok",
            output=output,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        adapter: str,
        step_id: str,
        error: str,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            adapter=adapter,
            step_id=step_id,
            status="failed",
            error=error,
            **kwargs,
        )
