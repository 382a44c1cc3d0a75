"""
Adapter registry — central dispatch for all adapter operations.

The registry is the single point of adapter management. It handles
registration, lookup, and the check / install / version calls the
sequencer makes. The sequencer never talks to adapters directly.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from newmachine.adapters.base import Adapter
from newmachine.core.context import ProvisionContext
from newmachine.core.models.receipt import Receipt
from newmachine.core.models.step import Probe, Step

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Central registry and dispatcher for adapters."""

    def __init__(self) -> None:
        self._adapters: dict[str, Adapter] = {}

    def register(self, adapter: Adapter) -> None:
        """Register an adapter under its name."""
        name = adapter.name
        if name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", name)
        self._adapters[name] = adapter
        logger.debug("Registered adapter: %s", name)

    def adapter_status(self, context: ProvisionContext) -> dict[str, dict[str, Any]]:
        """Get availability status of all registered adapters."""
        status = {}
        for name, adapter in self._adapters.items():
            try:
                available = adapter.is_available(context)
            except Exception:
                available = False
            status[name] = {
                "name": name,
                "available": available,
                "type": adapter.__class__.__name__,
            }
        return status

    # ── Dispatch ────────────────────────────────────────────────

    def check(self, step: Step, context: ProvisionContext) -> Probe:
        """Run the step's presence check.

        A check that cannot run (unknown adapter, invalid params, or an
        adapter bug) reports "not present" so the install path decides.
        """
        adapter = self._adapters.get(step.adapter)
        if adapter is None:
            return Probe.missing(f"No adapter registered for '{step.adapter}'")

        is_valid, error_msg = adapter.validate(step)
        if not is_valid:
            return Probe.missing(f"Validation failed: {error_msg}")

        try:
            return adapter.check(step, context)
        except Exception as e:
            logger.error("Adapter %s raised during check of %s: %s", step.adapter, step.id, e)
            return Probe.missing(f"Check error: {e}")

    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        """Run the step's install action. Never raises."""
        start_time = time.monotonic()

        adapter = self._adapters.get(step.adapter)
        if adapter is None:
            return Receipt.failure(
                adapter=step.adapter,
                step_id=step.id,
                error=f"No adapter registered for '{step.adapter}'",
            )

        is_valid, error_msg = adapter.validate(step)
        if not is_valid:
            return Receipt.failure(
                adapter=step.adapter,
                step_id=step.id,
                error=f"Validation failed: {error_msg}",
            )

        try:
            receipt = adapter.install(step, context)
        except Exception as e:
            # Adapters should never raise
            logger.error("Adapter %s raised during install of %s: %s", step.adapter, step.id, e)
            receipt = Receipt.failure(
                adapter=step.adapter,
                step_id=step.id,
                error=f"Unexpected error: {e}",
            )

        if not receipt.duration_ms:
            receipt.duration_ms = int((time.monotonic() - start_time) * 1000)
        return receipt

    def version(self, step: Step, context: ProvisionContext) -> str | None:
        """Report the installed version of a step's target, if known."""
        adapter = self._adapters.get(step.adapter)
        if adapter is None:
            return None
        try:
            return adapter.version(step, context)
        except Exception as e:
            logger.debug("Version probe for %s failed: %s", step.id, e)
            return None
