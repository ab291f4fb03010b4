"""Mermaid diagram generator for the declared topology."""

import logging
import re
from typing import Dict, List, Any

logger = logging.getLogger(__name__)

NETWORK_TYPES = {'AWS::EC2::Subnet', 'AWS::EC2::SecurityGroup', 'AWS::EC2::Instance'}
DELIVERY_TYPES = {
    'AWS::CodePipeline::Pipeline',
    'AWS::CodeBuild::Project',
    'AWS::CodeDeploy::Application',
    'AWS::CodeDeploy::DeploymentGroup',
}


class MermaidTopologyGenerator:
    """Generates Mermaid diagrams from a topology description."""

    def generate(self, topology: List[Dict[str, Any]]) -> str:
        """Generate a complete Mermaid diagram."""
        lines = ["graph TD"]

        vpcs = [e for e in topology if e['type'] == 'AWS::EC2::VPC']
        pipelines = [e for e in topology if e['type'] == 'AWS::CodePipeline::Pipeline']
        placed = set()

        for vpc in vpcs:
            lines.append(f'    subgraph VPC_{self._sanitize_id(vpc["id"])}["VPC: {vpc["name"]}"]')
            for entry in topology:
                if entry['type'] in NETWORK_TYPES:
                    lines.append(f"        {self._node(entry)}")
                    placed.add(entry['id'])
            lines.append("    end")
            placed.add(vpc['id'])

        for pipeline in pipelines:
            lines.append(
                f'    subgraph Pipeline_{self._sanitize_id(pipeline["id"])}["Pipeline: {pipeline["name"]}"]'
            )
            lines.extend(self._stage_lines(pipeline))
            for entry in topology:
                if entry['type'] in DELIVERY_TYPES:
                    lines.append(f"        {self._node(entry)}")
                    placed.add(entry['id'])
            lines.append("    end")
            placed.add(pipeline['id'])

        for entry in topology:
            if entry['id'] not in placed:
                lines.append(f"    {self._node(entry)}")

        lines.extend(self._generate_connections(topology))
        return "\n".join(lines)

    def _stage_lines(self, pipeline: Dict[str, Any]) -> List[str]:
        """One node per pipeline stage, chained in execution order."""
        lines = []
        stage_ids = []
        stages = pipeline['properties'].get('stages', {})
        pipeline_id = self._sanitize_id(pipeline['id'])
        for stage, actions in stages.items():
            stage_id = f"{pipeline_id}_{self._sanitize_id(stage)}"
            stage_ids.append(stage_id)
            lines.append(f'        {stage_id}["{stage}: {", ".join(actions)}"]')
        for previous, following in zip(stage_ids, stage_ids[1:]):
            lines.append(f"        {previous} --> {following}")
        return lines

    def _node(self, entry: Dict[str, Any]) -> str:
        short_type = entry['type'].split('::')[-1]
        return f'{self._sanitize_id(entry["id"])}["{short_type}: {entry["name"]}"]'

    def _generate_connections(self, topology: List[Dict[str, Any]]) -> List[str]:
        lines = []
        # VPCs render as subgraphs, not nodes
        known = {entry["id"] for entry in topology if entry["type"] != "AWS::EC2::VPC"}
        for entry in topology:
            for dependency in entry['depends_on']:
                if dependency not in known:
                    logger.debug(f"Skipping edge to unknown resource {dependency}")
                    continue
                lines.append(f"    {self._sanitize_id(dependency)} --> {self._sanitize_id(entry['id'])}")
        return lines

    def _sanitize_id(self, resource_id: str) -> str:
        """Sanitize resource ID for Mermaid."""
        return re.sub(r'[^A-Za-z0-9_]', '_', resource_id)
