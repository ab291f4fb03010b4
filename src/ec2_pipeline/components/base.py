"""Base classes for stack components."""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List, Tuple

from constructs import Construct


class ComponentDependencyError(Exception):
    """Raised when a component is built before the handles it needs exist."""

    def __init__(self, component: str, handle: str):
        self.component = component
        self.handle = handle
        super().__init__(f"Component '{component}' requires '{handle}', which no earlier component provided")


class BaseComponent(ABC):
    """Abstract base class for all stack components."""

    # Names of handles this component reads from / adds to the shared resources dict
    requires: Tuple[str, ...] = ()
    provides: Tuple[str, ...] = ()

    @abstractmethod
    def build(self, scope: Construct, resources: Dict[str, Any]) -> Dict[str, Any]:
        """Declare constructs on ``scope`` and return the handles they provide."""
        pass

    @abstractmethod
    def describe(self) -> List[Dict[str, Any]]:
        """Describe the declared resources from configuration alone."""
        pass

    @property
    def key(self) -> str:
        return f"{self.service}.{self.resource_type}"

    def check_requirements(self, resources: Dict[str, Any]):
        """Raise unless every handle in ``requires`` is already present."""
        for name in self.requires:
            if name not in resources:
                raise ComponentDependencyError(self.key, name)

    def require(self, resources: Dict[str, Any], name: str) -> Any:
        """Fetch a handle produced by an earlier component."""
        if name not in resources:
            raise ComponentDependencyError(self.key, name)
        return resources[name]

    def resource_entry(
        self,
        construct_id: str,
        resource_type: str,
        name: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
        handle: Optional[str] = None,
        depends_on: Optional[List[str]] = None
    ) -> Dict[str, Any]:
        """Build one topology entry.

        ``depends_on`` may name construct ids or handles; handles are resolved
        to construct ids by :func:`resolve_topology`.
        """
        return {
            'id': construct_id,
            'type': resource_type,
            'name': name or construct_id,
            'component': self.key,
            'handle': handle,
            'properties': properties or {},
            'depends_on': depends_on or []
        }


def resolve_topology(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Replace handle names in ``depends_on`` with the construct ids providing them."""
    handle_ids = {entry['handle']: entry['id'] for entry in entries if entry.get('handle')}
    resolved = []
    for entry in entries:
        entry = dict(entry)
        entry['depends_on'] = [handle_ids.get(dep, dep) for dep in entry['depends_on']]
        resolved.append(entry)
    return resolved


class ConfiguredComponent(BaseComponent):
    """Base class for components with hierarchical configuration support."""

    def __init__(
        self,
        service: str,
        resource_type: str,
        config_loader=None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ):
        self.service = service
        self.resource_type = resource_type

        # Import here to avoid circular imports
        if config_loader is None:
            from ec2_pipeline.config.loader import HierarchicalConfigLoader
            config_loader = HierarchicalConfigLoader()

        self.config_loader = config_loader
        self.config = self.config_loader.get_component_config(
            service,
            resource_type,
            cli_overrides
        )

    def get_config_value(self, path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            path: Dot-separated path to config value (e.g. 'source.owner')
            default: Default value if path not found

        Returns:
            Configuration value or default
        """
        keys = path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value
