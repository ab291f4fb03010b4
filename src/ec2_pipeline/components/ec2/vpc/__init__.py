"""VPC component."""

import logging
from typing import Dict, Any, List, Optional

from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from ...base import ConfiguredComponent

logger = logging.getLogger(__name__)

SUBNET_TYPES = {
    'public': ec2.SubnetType.PUBLIC,
    'private': ec2.SubnetType.PRIVATE_WITH_EGRESS,
    'isolated': ec2.SubnetType.PRIVATE_ISOLATED,
}


def subnet_type(name: str) -> ec2.SubnetType:
    """Map a configured subnet type name to the CDK enum."""
    try:
        return SUBNET_TYPES[name.lower()]
    except KeyError:
        raise ValueError(
            f"Invalid subnet type: {name}. Must be one of: {sorted(SUBNET_TYPES)}"
        ) from None


class VpcComponent(ConfiguredComponent):
    """Network holding the web server's subnets."""

    provides = ('vpc',)

    def __init__(
        self,
        service: str = 'ec2',
        resource_type: str = 'vpc',
        config_loader=None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ):
        super().__init__(service, resource_type, config_loader, cli_overrides)

    @property
    def subnets(self) -> List[Dict[str, Any]]:
        subnets = self.get_config_value('subnets', [])
        if not subnets:
            raise ValueError("VPC needs at least one subnet configuration")
        return subnets

    def subnet_configuration(self) -> List[ec2.SubnetConfiguration]:
        return [
            ec2.SubnetConfiguration(
                name=subnet['name'],
                cidr_mask=int(subnet.get('cidr_mask', 24)),
                subnet_type=subnet_type(subnet.get('type', 'public')),
            )
            for subnet in self.subnets
        ]

    def build(self, scope: Construct, resources: Dict[str, Any]) -> Dict[str, Any]:
        kwargs = {'subnet_configuration': self.subnet_configuration()}

        max_azs = self.get_config_value('max_azs')
        if max_azs is not None:
            kwargs['max_azs'] = int(max_azs)

        vpc = ec2.Vpc(scope, self.get_config_value('construct_id', 'main_vpc'), **kwargs)
        logger.debug(f"Declared VPC with {len(kwargs['subnet_configuration'])} subnet groups")
        return {'vpc': vpc}

    def describe(self) -> List[Dict[str, Any]]:
        vpc_id = self.get_config_value('construct_id', 'main_vpc')
        entries = [
            self.resource_entry(
                vpc_id,
                'AWS::EC2::VPC',
                handle='vpc',
                properties={'subnet_groups': len(self.subnets)}
            )
        ]
        for subnet in self.subnets:
            entries.append(
                self.resource_entry(
                    subnet['name'],
                    'AWS::EC2::Subnet',
                    properties={
                        'cidr_mask': int(subnet.get('cidr_mask', 24)),
                        'type': subnet.get('type', 'public')
                    },
                    depends_on=[vpc_id]
                )
            )
        return entries
