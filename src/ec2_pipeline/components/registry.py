"""Registry for stack components."""

from typing import Dict, Any, Iterator, List, Optional, Tuple, Type
import logging
from pathlib import Path

from .base import BaseComponent
from ..config.loader import HierarchicalConfigLoader

logger = logging.getLogger(__name__)

# Components are built in this order; later entries consume handles of earlier ones.
BUILD_ORDER: List[Tuple[str, str]] = [
    ('iam', 'role'),
    ('ec2', 'vpc'),
    ('ec2', 'security_group'),
    ('ec2', 'instance'),
    ('codebuild', 'project'),
    ('codedeploy', 'deployment_group'),
    ('codepipeline', 'pipeline'),
]


class ComponentRegistry:
    """Registry for loading and managing stack components."""

    def __init__(self, config_loader=None):
        self._components: Dict[str, Dict[str, Type[BaseComponent]]] = {}
        self._instances: Dict[str, BaseComponent] = {}
        self.config_loader = config_loader or HierarchicalConfigLoader()

        self._register_builtin_components()

    def _register_builtin_components(self):
        """Register all built-in components."""
        from .iam.role import InstanceRoleComponent
        from .ec2.vpc import VpcComponent
        from .ec2.security_group import WebSecurityGroupComponent
        from .ec2.instance import WebServerComponent
        from .codebuild.project import BuildProjectComponent
        from .codedeploy.deployment_group import DeploymentGroupComponent
        from .codepipeline.pipeline import PipelineComponent

        self.register('iam', 'role', InstanceRoleComponent)
        self.register('ec2', 'vpc', VpcComponent)
        self.register('ec2', 'security_group', WebSecurityGroupComponent)
        self.register('ec2', 'instance', WebServerComponent)
        self.register('codebuild', 'project', BuildProjectComponent)
        self.register('codedeploy', 'deployment_group', DeploymentGroupComponent)
        self.register('codepipeline', 'pipeline', PipelineComponent)

    def register(
        self,
        service: str,
        resource_type: str,
        component_class: Type[BaseComponent]
    ):
        """Register a component class for a service/resource type."""
        if service not in self._components:
            self._components[service] = {}

        self._components[service][resource_type] = component_class
        logger.debug(f"Registered component: {service}.{resource_type}")

    def get_component(
        self,
        service: str,
        resource_type: str,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> BaseComponent:
        """
        Get a component instance for a service/resource type.

        Args:
            service: AWS service name (e.g., 'ec2', 'codepipeline')
            resource_type: Resource type (e.g., 'vpc', 'pipeline')
            cli_overrides: Optional CLI configuration overrides

        Returns:
            Configured component instance

        Raises:
            KeyError: If component not found
        """
        cache_key = f"{service}.{resource_type}"

        if cli_overrides is None and cache_key in self._instances:
            return self._instances[cache_key]

        if not self.has_component(service, resource_type):
            raise KeyError(f"No component registered for {service}.{resource_type}")

        component_class = self._components[service][resource_type]

        instance = component_class(
            service=service,
            resource_type=resource_type,
            config_loader=self.config_loader,
            cli_overrides=cli_overrides
        )

        if cli_overrides is None:
            self._instances[cache_key] = instance

        return instance

    def iter_components(
        self,
        overrides: Optional[Dict[str, Dict[str, Any]]] = None
    ) -> Iterator[BaseComponent]:
        """Yield configured components in build order.

        Args:
            overrides: Optional per-component overrides keyed by 'service.resource_type'
        """
        overrides = overrides or {}
        for service, resource_type in BUILD_ORDER:
            if not self.has_component(service, resource_type):
                continue
            yield self.get_component(
                service,
                resource_type,
                overrides.get(f"{service}.{resource_type}")
            )

    def has_component(self, service: str, resource_type: str) -> bool:
        """Check if a component is registered for service/resource type."""
        return (service in self._components and
                resource_type in self._components[service])

    def list_components(self) -> Dict[str, list]:
        """List all registered components by service."""
        result = {}
        for service, resource_types in self._components.items():
            result[service] = list(resource_types.keys())
        return result

    def get_component_path(self, service: str, resource_type: str) -> Path:
        """Get the filesystem path for a component's config directory."""
        components_dir = Path(__file__).parent
        return components_dir / service / resource_type
