"""Stack components - one module per declared AWS resource."""

from .registry import ComponentRegistry, BUILD_ORDER
from .base import BaseComponent, ConfiguredComponent, ComponentDependencyError, resolve_topology

__all__ = [
    'ComponentRegistry',
    'BUILD_ORDER',
    'BaseComponent',
    'ConfiguredComponent',
    'ComponentDependencyError',
    'resolve_topology',
]
