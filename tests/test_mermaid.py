"""Tests for the Mermaid topology diagram."""

from ec2_pipeline.mermaid import MermaidTopologyGenerator
from ec2_pipeline.stack import describe_topology


def _diagram():
    return MermaidTopologyGenerator().generate(describe_topology())


def test_diagram_header_and_subgraphs():
    diagram = _diagram()

    assert diagram.startswith("graph TD\n")
    assert 'subgraph VPC_main_vpc["VPC: main_vpc"]' in diagram
    assert 'subgraph Pipeline_python_web_pipeline["Pipeline: python-webApp"]' in diagram
    assert diagram.count("    end") == 2


def test_network_resources_inside_vpc():
    lines = _diagram().splitlines()
    start = lines.index('    subgraph VPC_main_vpc["VPC: main_vpc"]')
    end = lines.index("    end", start)
    block = "\n".join(lines[start:end])

    assert 'pub01["Subnet: pub01"]' in block
    assert 'web_sg["SecurityGroup: web_sg"]' in block
    assert 'web_server["Instance: web_server"]' in block
    assert 'ec2Role' not in block


def test_pipeline_stages_chained():
    diagram = _diagram()

    assert 'python_web_pipeline_Source["Source: GithubSource"]' in diagram
    assert 'python_web_pipeline_Build["Build: TestPython"]' in diagram
    assert 'python_web_pipeline_Deploy["Deploy: PythonAppDeployment"]' in diagram
    assert "python_web_pipeline_Source --> python_web_pipeline_Build" in diagram
    assert "python_web_pipeline_Build --> python_web_pipeline_Deploy" in diagram


def test_dependency_edges():
    diagram = _diagram()

    assert "    web_sg --> web_server" in diagram
    assert "    ec2Role --> web_server" in diagram
    assert "    web_server --> PythonAppDeployGroup" in diagram
    assert "    pythonTestProject --> python_web_pipeline" in diagram
    # the VPC is a subgraph, not a node
    assert "main_vpc -->" not in diagram


def test_ids_are_sanitized():
    diagram = _diagram()

    assert 'IP_Address["Output: IP Address"]' in diagram
    assert "web_server --> IP_Address" in diagram


def test_unknown_dependencies_are_skipped():
    topology = [{
        'id': 'orphan',
        'type': 'AWS::SNS::Topic',
        'name': 'orphan',
        'properties': {},
        'depends_on': ['not-declared']
    }]

    diagram = MermaidTopologyGenerator().generate(topology)

    assert diagram == 'graph TD\n    orphan["Topic: orphan"]'
