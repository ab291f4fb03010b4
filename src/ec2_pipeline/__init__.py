"""EC2 web server with a GitHub -> CodeBuild -> CodeDeploy delivery pipeline, as a CDK app."""

__version__ = "0.1.0"

from .stack import Ec2PipelineStack, describe_topology
from .app import build_app

__all__ = ["Ec2PipelineStack", "describe_topology", "build_app"]
