"""Adapters — tool bindings for git and the filesystem.

Public re-exports for convenient access.
"""

from launchpad.adapters.base import Adapter, ExecutionContext
from launchpad.adapters.mock import MockAdapter
from launchpad.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]
