"""The EC2 web server + delivery pipeline stack."""

import logging
from itertools import chain
from typing import Dict, Any, List, Optional

import aws_cdk as cdk
from constructs import Construct

from .components import ComponentRegistry, resolve_topology
from .components.codedeploy.deployment_group import tags_match

logger = logging.getLogger(__name__)


class Ec2PipelineStack(cdk.Stack):
    """Builds every registered component in order and exports the instance address."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config_loader=None,
        component_overrides: Optional[Dict[str, Dict[str, Any]]] = None,
        **kwargs
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.registry = ComponentRegistry(config_loader)
        self.components = list(self.registry.iter_components(component_overrides))
        self.resources: Dict[str, Any] = {}

        for component in self.components:
            component.check_requirements(self.resources)
            logger.debug(f"Building component {component.key}")
            handles = component.build(self, self.resources)

            missing = set(component.provides) - set(handles)
            if missing:
                raise RuntimeError(f"Component '{component.key}' did not provide {sorted(missing)}")
            self.resources.update(handles)

        self._check_deployment_targets()

        # Public IP of the web server, surfaced after deployment
        web_server = self.get_component('ec2', 'instance')
        cdk.CfnOutput(
            self,
            web_server.output_id,
            value=web_server.require(self.resources, 'instance').instance_public_ip,
        )

    def get_component(self, service: str, resource_type: str):
        for component in self.components:
            if component.service == service and component.resource_type == resource_type:
                return component
        raise KeyError(f"No component registered for {service}.{resource_type}")

    def _check_deployment_targets(self):
        """Warn when the deployment group would not select the web server."""
        instance_tags = self.get_component('ec2', 'instance').tags
        tag_set = self.get_component('codedeploy', 'deployment_group').instance_tags

        if not tags_match(instance_tags, tag_set):
            logger.warning(
                f"Deployment group tag set {tag_set} does not match instance tags "
                f"{instance_tags}; deployments will have no targets"
            )

    @property
    def topology(self) -> List[Dict[str, Any]]:
        return resolve_topology(list(chain.from_iterable(c.describe() for c in self.components)))


def describe_topology(
    config_loader=None,
    component_overrides: Optional[Dict[str, Dict[str, Any]]] = None
) -> List[Dict[str, Any]]:
    """Describe the stack's resources from configuration, without synthesizing."""
    registry = ComponentRegistry(config_loader)
    components = registry.iter_components(component_overrides)
    return resolve_topology(list(chain.from_iterable(c.describe() for c in components)))
