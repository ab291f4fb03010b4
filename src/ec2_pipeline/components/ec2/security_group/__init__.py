"""Security group component for the web server."""

import logging
from typing import Dict, Any, List, Optional

from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from ...base import ConfiguredComponent

logger = logging.getLogger(__name__)


def make_peer(peer: str) -> ec2.IPeer:
    """Translate a configured peer ('any_ipv4', 'any_ipv6' or a CIDR) to a CDK peer."""
    if peer == 'any_ipv4':
        return ec2.Peer.any_ipv4()
    if peer == 'any_ipv6':
        return ec2.Peer.any_ipv6()
    if ':' in peer:
        return ec2.Peer.ipv6(peer)
    return ec2.Peer.ipv4(peer)


def make_port(protocol: str, port: int) -> ec2.Port:
    protocol = protocol.lower()
    if protocol == 'tcp':
        return ec2.Port.tcp(port)
    if protocol == 'udp':
        return ec2.Port.udp(port)
    raise ValueError(f"Invalid protocol: {protocol}. Must be one of: ['tcp', 'udp']")


class WebSecurityGroupComponent(ConfiguredComponent):
    """Security group that only lets HTTP in."""

    requires = ('vpc',)
    provides = ('security_group',)

    def __init__(
        self,
        service: str = 'ec2',
        resource_type: str = 'security_group',
        config_loader=None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ):
        super().__init__(service, resource_type, config_loader, cli_overrides)

    @property
    def ingress_rules(self) -> List[Dict[str, Any]]:
        return list(self.get_config_value('ingress', []))

    def build(self, scope: Construct, resources: Dict[str, Any]) -> Dict[str, Any]:
        vpc = self.require(resources, 'vpc')

        web_sg = ec2.SecurityGroup(
            scope,
            self.get_config_value('construct_id', 'web_sg'),
            vpc=vpc,
            description=self.get_config_value('description'),
            allow_all_outbound=self.get_config_value('allow_all_outbound', True),
        )

        for rule in self.ingress_rules:
            web_sg.add_ingress_rule(
                make_peer(rule.get('peer', 'any_ipv4')),
                make_port(rule.get('protocol', 'tcp'), int(rule['port'])),
            )
            logger.debug(f"Ingress {rule.get('protocol', 'tcp')}/{rule['port']} from {rule.get('peer', 'any_ipv4')}")

        return {'security_group': web_sg}

    def describe(self) -> List[Dict[str, Any]]:
        return [
            self.resource_entry(
                self.get_config_value('construct_id', 'web_sg'),
                'AWS::EC2::SecurityGroup',
                properties={
                    'description': self.get_config_value('description'),
                    'allow_all_outbound': self.get_config_value('allow_all_outbound', True),
                    'ingress': [
                        f"{rule.get('protocol', 'tcp')}/{rule['port']} from {rule.get('peer', 'any_ipv4')}"
                        for rule in self.ingress_rules
                    ]
                },
                handle='security_group',
                depends_on=['vpc']
            )
        ]
