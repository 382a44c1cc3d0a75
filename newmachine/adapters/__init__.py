"""Adapters — bindings for the external tools a run drives.

Public re-exports for convenient access.
"""

from newmachine.adapters.base import Adapter
from newmachine.adapters.mock import MockAdapter
from newmachine.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "MockAdapter",
]
