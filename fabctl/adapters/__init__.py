"""Adapters — tool bindings for docker, compose and the local shell.

Public re-exports for convenient access.
"""

from fabctl.adapters.base import Adapter, ExecutionContext
from fabctl.adapters.mock import MockAdapter
from fabctl.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]
