"""Tests for the Graphviz topology diagram."""

import shutil
from unittest.mock import MagicMock, patch

import pytest

from ec2_pipeline import diagram as diagram_module
from ec2_pipeline.diagram import TopologyDiagramGenerator
from ec2_pipeline.stack import describe_topology


@pytest.fixture
def node_classes():
    """Replace every diagrams node class with a mock that records its label."""
    mocks = {resource_type: MagicMock(name=resource_type) for resource_type in diagram_module.NODE_CLASSES}
    with patch.dict(diagram_module.NODE_CLASSES, mocks), \
            patch.object(diagram_module, 'Diagram') as mock_diagram, \
            patch.object(diagram_module, 'Cluster') as mock_cluster, \
            patch.object(diagram_module, 'Edge'), \
            patch.object(diagram_module, 'Github') as mock_github, \
            patch.object(diagram_module, 'General') as mock_general, \
            patch.object(diagram_module, 'PublicSubnet') as mock_public, \
            patch.object(diagram_module, 'PrivateSubnet') as mock_private:
        yield {
            'nodes': mocks,
            'Diagram': mock_diagram,
            'Cluster': mock_cluster,
            'Github': mock_github,
            'General': mock_general,
            'PublicSubnet': mock_public,
            'PrivateSubnet': mock_private,
        }


def test_every_resource_becomes_a_node(node_classes, tmp_path):
    generator = TopologyDiagramGenerator()

    generator.generate_diagram(describe_topology(), output_path=tmp_path / 'topology')

    assert set(generator.nodes) == {
        'ec2Role', 'pub01', 'pub02', 'pub03', 'web_sg', 'web_server', 'IP Address',
        'pythonTestProject', 'python_deploy_application', 'PythonAppDeployGroup', 'python_web_pipeline'
    }
    assert node_classes['PublicSubnet'].call_count == 3
    node_classes['PrivateSubnet'].assert_not_called()
    node_classes['nodes']['AWS::EC2::Instance'].assert_called_once_with("web_server\n(Instance)")
    node_classes['nodes']['AWS::CodePipeline::Pipeline'].assert_called_once_with("python-webApp\n(Pipeline)")


def test_vpc_and_pipeline_clusters(node_classes, tmp_path):
    TopologyDiagramGenerator().generate_diagram(describe_topology(), output_path=tmp_path / 'topology')

    labels = [call.args[0] for call in node_classes['Cluster'].call_args_list]
    assert labels == ["VPC: main_vpc", "Pipeline: python-webApp"]


def test_source_repository_node(node_classes, tmp_path):
    TopologyDiagramGenerator().generate_diagram(describe_topology(), output_path=tmp_path / 'topology')

    node_classes['Github'].assert_called_once_with("Aakarshak-TNM/sample-python-web-app\nmain")


def test_diagram_options(node_classes, tmp_path):
    result = TopologyDiagramGenerator("Web").generate_diagram(
        describe_topology(), output_path=tmp_path / 'topology.png', outformat=['png', 'svg']
    )

    args, kwargs = node_classes['Diagram'].call_args
    assert args == ("Web",)
    assert kwargs['filename'] == str(tmp_path / 'topology')
    assert kwargs['outformat'] == ['png', 'svg']
    assert kwargs['show'] is False
    # nothing was rendered by the mocked Diagram
    assert result == {'png': None, 'svg': None}


def test_unknown_types_fall_back_to_general(node_classes, tmp_path):
    topology = [{
        'id': 'alerts',
        'type': 'AWS::SNS::Topic',
        'name': 'alerts',
        'properties': {},
        'depends_on': []
    }]

    TopologyDiagramGenerator().generate_diagram(topology, output_path=tmp_path / 'topology')

    node_classes['General'].assert_called_once_with("alerts\n(Topic)")


@pytest.mark.skipif(shutil.which('dot') is None, reason="Graphviz is not installed")
def test_renders_png(tmp_path):
    result = TopologyDiagramGenerator().generate_diagram(describe_topology(), output_path=tmp_path / 'topology')

    assert result == {'png': str(tmp_path / 'topology.png')}
    assert (tmp_path / 'topology.png').stat().st_size > 0
