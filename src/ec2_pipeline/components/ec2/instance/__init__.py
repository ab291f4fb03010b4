"""Web server EC2 instance component."""

import logging
from pathlib import Path
from typing import Dict, Any, List, Optional, Union

import aws_cdk as cdk
from aws_cdk import aws_ec2 as ec2
from constructs import Construct

from ...base import ConfiguredComponent
from ..vpc import subnet_type

logger = logging.getLogger(__name__)

CPU_TYPES = {
    'x86_64': ec2.AmazonLinuxCpuType.X86_64,
    'arm_64': ec2.AmazonLinuxCpuType.ARM_64,
}


def load_user_data(path: Union[str, Path]) -> str:
    """Read the bootstrap shell script used as instance user data."""
    script_path = Path(path)
    if not script_path.is_file():
        raise FileNotFoundError(f"Bootstrap script not found: {script_path.resolve()}")

    logger.debug(f"Loaded bootstrap script from {script_path}")
    return script_path.read_text(encoding='utf-8')


def make_machine_image(generation: str, cpu_type: str) -> ec2.IMachineImage:
    """Latest Amazon Linux AMI for the region, resolved through SSM at deploy time."""
    try:
        cpu = CPU_TYPES[cpu_type.lower()]
    except KeyError:
        raise ValueError(f"Invalid cpu_type: {cpu_type}. Must be one of: {sorted(CPU_TYPES)}") from None

    generation = generation.lower()
    if generation == 'amazon_linux_2023':
        return ec2.MachineImage.latest_amazon_linux2023(cpu_type=cpu)
    if generation == 'amazon_linux_2':
        return ec2.MachineImage.latest_amazon_linux2(cpu_type=cpu)
    raise ValueError(
        f"Invalid generation: {generation}. Must be one of: ['amazon_linux_2', 'amazon_linux_2023']"
    )


def make_instance_type(instance_class: str, instance_size: str) -> ec2.InstanceType:
    try:
        return ec2.InstanceType.of(
            getattr(ec2.InstanceClass, instance_class.upper()),
            getattr(ec2.InstanceSize, instance_size.upper()),
        )
    except AttributeError:
        raise ValueError(f"Unknown instance type: {instance_class}.{instance_size}") from None


class WebServerComponent(ConfiguredComponent):
    """The web server instance, bootstrapped from a local shell script."""

    requires = ('vpc', 'security_group', 'role')
    provides = ('instance',)

    def __init__(
        self,
        service: str = 'ec2',
        resource_type: str = 'instance',
        config_loader=None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ):
        super().__init__(service, resource_type, config_loader, cli_overrides)

    @property
    def instance_type_name(self) -> str:
        return (f"{self.get_config_value('instance_class', 't3')}."
                f"{self.get_config_value('instance_size', 'micro')}").lower()

    @property
    def bootstrap_script(self) -> Path:
        return Path(self.get_config_value('bootstrap_script', 'assets/configure_amz_linux_sample_app.sh'))

    @property
    def tags(self) -> Dict[str, str]:
        return {str(k): str(v) for k, v in (self.get_config_value('tags') or {}).items()}

    @property
    def output_id(self) -> str:
        return self.get_config_value('output.construct_id', 'IP Address')

    def build(self, scope: Construct, resources: Dict[str, Any]) -> Dict[str, Any]:
        vpc = self.require(resources, 'vpc')
        security_group = self.require(resources, 'security_group')
        role = self.require(resources, 'role')

        machine_image = make_machine_image(
            self.get_config_value('machine_image.generation', 'amazon_linux_2023'),
            self.get_config_value('machine_image.cpu_type', 'x86_64'),
        )

        web_server = ec2.Instance(
            scope,
            self.get_config_value('construct_id', 'web_server'),
            vpc=vpc,
            vpc_subnets=ec2.SubnetSelection(
                subnet_type=subnet_type(self.get_config_value('subnet_type', 'public'))
            ),
            instance_type=make_instance_type(
                self.get_config_value('instance_class', 't3'),
                self.get_config_value('instance_size', 'micro'),
            ),
            machine_image=machine_image,
            security_group=security_group,
            role=role,
        )

        web_server.add_user_data(load_user_data(self.bootstrap_script))

        for key, value in self.tags.items():
            cdk.Tags.of(web_server).add(key, value)

        return {'instance': web_server}

    def describe(self) -> List[Dict[str, Any]]:
        instance_id = self.get_config_value('construct_id', 'web_server')
        return [
            self.resource_entry(
                instance_id,
                'AWS::EC2::Instance',
                handle='instance',
                properties={
                    'instance_type': self.instance_type_name,
                    'machine_image': self.get_config_value('machine_image', {}),
                    'subnet_type': self.get_config_value('subnet_type', 'public'),
                    'bootstrap_script': str(self.bootstrap_script),
                    'tags': self.tags
                },
                depends_on=['vpc', 'security_group', 'role']
            ),
            self.resource_entry(
                self.output_id,
                'AWS::CloudFormation::Output',
                properties={'value': f"{instance_id}.PublicIp"},
                depends_on=[instance_id]
            )
        ]
