"""CodeBuild project that runs the application's tests."""

import logging
from typing import Dict, Any, List, Optional

from aws_cdk import aws_codebuild as codebuild
from constructs import Construct

from ...base import ConfiguredComponent

logger = logging.getLogger(__name__)


def make_build_image(name: str) -> codebuild.IBuildImage:
    """Resolve a ``LinuxBuildImage`` constant by name, e.g. ``AMAZON_LINUX_2_5``."""
    image = getattr(codebuild.LinuxBuildImage, name.upper(), None)
    if image is None:
        raise ValueError(f"Unknown CodeBuild Linux image: {name}")
    return image


class BuildProjectComponent(ConfiguredComponent):
    """Pipeline project for the Build stage. Its buildspec comes from the source repo."""

    provides = ('build_project',)

    def __init__(
        self,
        service: str = 'codebuild',
        resource_type: str = 'project',
        config_loader=None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ):
        super().__init__(service, resource_type, config_loader, cli_overrides)

    def build(self, scope: Construct, resources: Dict[str, Any]) -> Dict[str, Any]:
        project = codebuild.PipelineProject(
            scope,
            self.get_config_value('construct_id', 'pythonTestProject'),
            environment=codebuild.BuildEnvironment(
                build_image=make_build_image(self.get_config_value('build_image', 'AMAZON_LINUX_2_5'))
            ),
        )
        return {'build_project': project}

    def describe(self) -> List[Dict[str, Any]]:
        return [
            self.resource_entry(
                self.get_config_value('construct_id', 'pythonTestProject'),
                'AWS::CodeBuild::Project',
                handle='build_project',
                properties={'build_image': self.get_config_value('build_image', 'AMAZON_LINUX_2_5')}
            )
        ]
