"""CodeDeploy server application and deployment group."""

import logging
from typing import Dict, Any, List, Optional

from aws_cdk import aws_codedeploy as codedeploy
from constructs import Construct

from ...base import ConfiguredComponent

logger = logging.getLogger(__name__)


def tags_match(instance_tags: Dict[str, str], tag_set: Dict[str, List[str]]) -> bool:
    """Whether an instance with ``instance_tags`` falls inside one CodeDeploy tag group.

    Entries of a group are OR-ed: the instance matches when it carries any key
    with one of that key's listed values, or any key whose value list is empty.
    """
    for key, values in tag_set.items():
        if key not in instance_tags:
            continue
        if not values or instance_tags[key] in values:
            return True
    return False


class DeploymentGroupComponent(ConfiguredComponent):
    """Server deployment group that targets the web server by tag."""

    requires = ('instance',)
    provides = ('deploy_application', 'deployment_group')

    def __init__(
        self,
        service: str = 'codedeploy',
        resource_type: str = 'deployment_group',
        config_loader=None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ):
        super().__init__(service, resource_type, config_loader, cli_overrides)

    @property
    def instance_tags(self) -> Dict[str, List[str]]:
        tags = self.get_config_value('ec2_instance_tags') or {}
        return {str(key): [str(v) for v in values or []] for key, values in tags.items()}

    def build(self, scope: Construct, resources: Dict[str, Any]) -> Dict[str, Any]:
        application = codedeploy.ServerApplication(
            scope,
            self.get_config_value('application.construct_id', 'python_deploy_application'),
            application_name=self.get_config_value('application.name'),
        )

        tag_set = self.instance_tags
        deployment_group = codedeploy.ServerDeploymentGroup(
            scope,
            self.get_config_value('construct_id', 'PythonAppDeployGroup'),
            application=application,
            deployment_group_name=self.get_config_value('name'),
            install_agent=self.get_config_value('install_agent', True),
            ec2_instance_tags=codedeploy.InstanceTagSet(tag_set) if tag_set else None,
        )

        return {
            'deploy_application': application,
            'deployment_group': deployment_group
        }

    def describe(self) -> List[Dict[str, Any]]:
        application_id = self.get_config_value('application.construct_id', 'python_deploy_application')
        return [
            self.resource_entry(
                application_id,
                'AWS::CodeDeploy::Application',
                name=self.get_config_value('application.name'),
                handle='deploy_application',
                properties={'compute_platform': 'Server'}
            ),
            self.resource_entry(
                self.get_config_value('construct_id', 'PythonAppDeployGroup'),
                'AWS::CodeDeploy::DeploymentGroup',
                name=self.get_config_value('name'),
                handle='deployment_group',
                properties={
                    'install_agent': self.get_config_value('install_agent', True),
                    'ec2_instance_tags': self.instance_tags
                },
                depends_on=[application_id, 'instance']
            )
        ]
