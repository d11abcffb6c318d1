"""Adapters — tool bindings for apt, docker, git, npm and the host shell."""

from geonode_devenv.adapters.base import Adapter, ExecutionContext
from geonode_devenv.adapters.mock import MockAdapter
from geonode_devenv.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]
