"""IAM role component for the web server instance."""

import logging
from typing import Dict, Any, List, Optional

from aws_cdk import aws_iam as iam
from constructs import Construct

from ...base import ConfiguredComponent

logger = logging.getLogger(__name__)


class InstanceRoleComponent(ConfiguredComponent):
    """Role assumed by the EC2 instance (SSM management + CodeDeploy agent)."""

    provides = ('role',)

    def __init__(
        self,
        service: str = 'iam',
        resource_type: str = 'role',
        config_loader=None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ):
        super().__init__(service, resource_type, config_loader, cli_overrides)

    @property
    def managed_policies(self) -> List[str]:
        return list(self.get_config_value('managed_policies', []))

    def build(self, scope: Construct, resources: Dict[str, Any]) -> Dict[str, Any]:
        role = iam.Role(
            scope,
            self.get_config_value('construct_id', 'ec2Role'),
            assumed_by=iam.ServicePrincipal(
                self.get_config_value('assumed_by', 'ec2.amazonaws.com')
            ),
        )

        for policy_name in self.managed_policies:
            role.add_managed_policy(
                iam.ManagedPolicy.from_aws_managed_policy_name(policy_name)
            )
            logger.debug(f"Attached managed policy {policy_name}")

        return {'role': role}

    def describe(self) -> List[Dict[str, Any]]:
        return [
            self.resource_entry(
                self.get_config_value('construct_id', 'ec2Role'),
                'AWS::IAM::Role',
                handle='role',
                properties={
                    'assumed_by': self.get_config_value('assumed_by', 'ec2.amazonaws.com'),
                    'managed_policies': self.managed_policies
                }
            )
        ]
