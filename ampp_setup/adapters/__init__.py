"""Adapters — bindings to brew, patch, the filesystem and the shell.

Public re-exports for convenient access.
"""

from ampp_setup.adapters.base import Adapter, ExecutionContext
from ampp_setup.adapters.mock import MockAdapter
from ampp_setup.adapters.registry import AdapterRegistry, create_default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "create_default_registry",
]
