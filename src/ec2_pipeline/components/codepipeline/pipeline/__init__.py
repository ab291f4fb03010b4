"""CodePipeline component: GitHub source -> CodeBuild tests -> CodeDeploy."""

import logging
from typing import Dict, Any, List, Optional

import aws_cdk as cdk
from aws_cdk import aws_codepipeline as codepipeline
from aws_cdk import aws_codepipeline_actions as cpactions
from constructs import Construct

from ...base import ConfiguredComponent
from ....config.schema import SourceRepository, validate_source

logger = logging.getLogger(__name__)


class PipelineComponent(ConfiguredComponent):
    """Three-stage delivery pipeline for the web application."""

    requires = ('build_project', 'deployment_group')
    provides = ('pipeline',)

    def __init__(
        self,
        service: str = 'codepipeline',
        resource_type: str = 'pipeline',
        config_loader=None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ):
        super().__init__(service, resource_type, config_loader, cli_overrides)

    @property
    def source(self) -> SourceRepository:
        source = dict(self.get_config_value('source') or {})
        source.pop('action_name', None)
        return validate_source(source)

    @property
    def stage_names(self) -> List[str]:
        stages = list(self.get_config_value('stages', ['Source', 'Build', 'Deploy']))
        if len(stages) != 3:
            raise ValueError(f"Pipeline needs exactly 3 stages (source, build, deploy), got: {stages}")
        return stages

    def build(self, scope: Construct, resources: Dict[str, Any]) -> Dict[str, Any]:
        build_project = self.require(resources, 'build_project')
        deployment_group = self.require(resources, 'deployment_group')
        source = self.source
        source_stage_name, build_stage_name, deploy_stage_name = self.stage_names

        pipeline = codepipeline.Pipeline(
            scope,
            self.get_config_value('construct_id', 'python_web_pipeline'),
            pipeline_name=self.get_config_value('name'),
            # no KMS key for the artifact bucket
            cross_account_keys=self.get_config_value('cross_account_keys', False),
        )

        source_stage = pipeline.add_stage(stage_name=source_stage_name)
        build_stage = pipeline.add_stage(stage_name=build_stage_name)
        deploy_stage = pipeline.add_stage(stage_name=deploy_stage_name)

        source_output = codepipeline.Artifact()
        source_stage.add_action(
            cpactions.GitHubSourceAction(
                action_name=self.get_config_value('source.action_name', 'GithubSource'),
                # must exist in Secrets Manager before deploying
                oauth_token=cdk.SecretValue.secrets_manager(source.oauth_secret_name),
                owner=source.owner,
                repo=source.repo,
                branch=source.branch,
                output=source_output,
            )
        )

        test_output = codepipeline.Artifact()
        build_stage.add_action(
            cpactions.CodeBuildAction(
                action_name=self.get_config_value('build.action_name', 'TestPython'),
                project=build_project,
                input=source_output,
                outputs=[test_output],
            )
        )

        deploy_stage.add_action(
            cpactions.CodeDeployServerDeployAction(
                action_name=self.get_config_value('deploy.action_name', 'PythonAppDeployment'),
                input=source_output,
                deployment_group=deployment_group,
            )
        )

        logger.debug(f"Pipeline source: {source.owner}/{source.repo}@{source.branch}")
        return {'pipeline': pipeline}

    def describe(self) -> List[Dict[str, Any]]:
        source = self.source
        source_stage, build_stage, deploy_stage = self.stage_names
        return [
            self.resource_entry(
                self.get_config_value('construct_id', 'python_web_pipeline'),
                'AWS::CodePipeline::Pipeline',
                name=self.get_config_value('name'),
                handle='pipeline',
                properties={
                    'cross_account_keys': self.get_config_value('cross_account_keys', False),
                    'stages': {
                        source_stage: [self.get_config_value('source.action_name', 'GithubSource')],
                        build_stage: [self.get_config_value('build.action_name', 'TestPython')],
                        deploy_stage: [self.get_config_value('deploy.action_name', 'PythonAppDeployment')]
                    },
                    'source': {
                        'provider': 'GitHub',
                        'repository': f"{source.owner}/{source.repo}",
                        'branch': source.branch,
                        'oauth_secret_name': source.oauth_secret_name
                    }
                },
                depends_on=['build_project', 'deployment_group']
            )
        ]
