"""Python Diagrams generator for the declared topology (Graphviz output)."""

import logging
from pathlib import Path
from typing import Dict, List, Any, Optional, Union

from diagrams import Diagram, Cluster, Edge
from diagrams.aws.compute import EC2
from diagrams.aws.devtools import Codebuild, Codedeploy, Codepipeline
from diagrams.aws.general import General
from diagrams.aws.network import VPC, PublicSubnet, PrivateSubnet
from diagrams.aws.security import IAMRole
from diagrams.onprem.vcs import Github

logger = logging.getLogger(__name__)

NODE_CLASSES = {
    'AWS::IAM::Role': IAMRole,
    'AWS::EC2::VPC': VPC,
    'AWS::EC2::Instance': EC2,
    'AWS::CodePipeline::Pipeline': Codepipeline,
    'AWS::CodeBuild::Project': Codebuild,
    'AWS::CodeDeploy::Application': Codedeploy,
    'AWS::CodeDeploy::DeploymentGroup': Codedeploy,
}

VPC_MEMBER_TYPES = {'AWS::EC2::Subnet', 'AWS::EC2::SecurityGroup', 'AWS::EC2::Instance'}
PIPELINE_MEMBER_TYPES = {
    'AWS::CodePipeline::Pipeline',
    'AWS::CodeBuild::Project',
    'AWS::CodeDeploy::Application',
    'AWS::CodeDeploy::DeploymentGroup',
}


class TopologyDiagramGenerator:
    """Generates DOT/Graphviz diagrams using Python Diagrams from a topology description."""

    def __init__(self, title: str = "EC2 Web Server Pipeline"):
        self.title = title
        self.nodes: Dict[str, Any] = {}

    def generate_diagram(
        self,
        topology: List[Dict[str, Any]],
        output_path: Union[str, Path] = "ec2_pipeline",
        outformat: Union[str, List[str]] = "png"
    ) -> Dict[str, Optional[str]]:
        """Render the topology and return the path of each produced file."""
        self.nodes = {}
        formats = [outformat] if isinstance(outformat, str) else list(outformat)

        output_path = Path(output_path)
        final_output_path = output_path.parent / output_path.stem

        with Diagram(
            self.title,
            filename=str(final_output_path),
            show=False,
            direction="LR",
            graph_attr={
                "nodesep": "0.8",
                "ranksep": "1.2",
                "bgcolor": "white"
            },
            outformat=formats
        ):
            vpc = next((e for e in topology if e['type'] == 'AWS::EC2::VPC'), None)
            if vpc:
                with Cluster(f"VPC: {vpc['name']}"):
                    for entry in topology:
                        if entry['type'] in VPC_MEMBER_TYPES:
                            self._create_node(entry)

            pipeline = next((e for e in topology if e['type'] == 'AWS::CodePipeline::Pipeline'), None)
            if pipeline:
                with Cluster(f"Pipeline: {pipeline['name']}"):
                    for entry in topology:
                        if entry['type'] in PIPELINE_MEMBER_TYPES:
                            self._create_node(entry)
                self._create_source_node(pipeline)

            for entry in topology:
                if entry['id'] not in self.nodes and entry['id'] != (vpc or {}).get('id'):
                    self._create_node(entry)

            self._create_connections(topology)

        return {
            fmt: str(final_output_path.with_suffix(f".{fmt}"))
            if final_output_path.with_suffix(f".{fmt}").exists() else None
            for fmt in formats
        }

    def _create_node(self, entry: Dict[str, Any]) -> Any:
        if entry['type'] == 'AWS::EC2::Subnet':
            subnet_class = PublicSubnet if entry['properties'].get('type', 'public') == 'public' else PrivateSubnet
            node = subnet_class(f"{entry['name']}\n/{entry['properties'].get('cidr_mask', '')}")
        else:
            node_class = NODE_CLASSES.get(entry['type'], General)
            node = node_class(self._label(entry))

        self.nodes[entry['id']] = node
        return node

    def _create_source_node(self, pipeline: Dict[str, Any]):
        source = pipeline['properties'].get('source')
        if not source:
            return
        github = Github(f"{source['repository']}\n{source['branch']}")
        github >> Edge(label="source", style="dashed") >> self.nodes[pipeline['id']]

    def _label(self, entry: Dict[str, Any]) -> str:
        short_type = entry['type'].split('::')[-1]
        if entry['name'] != entry['id']:
            return f"{entry['name']}\n({short_type})"
        return f"{entry['id']}\n({short_type})"

    def _create_connections(self, topology: List[Dict[str, Any]]):
        for entry in topology:
            target = self.nodes.get(entry['id'])
            if target is None:
                continue
            for dependency in entry['depends_on']:
                source = self.nodes.get(dependency)
                if source is None:
                    logger.debug(f"No node for {dependency}, skipping edge to {entry['id']}")
                    continue
                source >> Edge(color="gray") >> target
