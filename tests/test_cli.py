"""Tests for the ec2-pipeline command line."""

import json
from unittest.mock import patch

import pytest

from ec2_pipeline.cli import main, parse_context


def test_parse_context():
    assert parse_context(['github_owner=me', 'bootstrap_script=a=b.sh']) == {
        'github_owner': 'me',
        'bootstrap_script': 'a=b.sh'
    }
    assert parse_context(None) == {}


def test_parse_context_rejects_bare_keys():
    with pytest.raises(ValueError, match='KEY=VALUE'):
        parse_context(['github_owner'])


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert 'usage:' in capsys.readouterr().out


def test_verbose_and_quiet_conflict(capsys):
    assert main(['-v', '-q', 'describe']) == 1
    assert 'Cannot use both' in capsys.readouterr().out


def test_bad_context_is_reported(capsys):
    assert main(['-c', 'github_owner', 'describe']) == 1
    assert 'Error: Context must be KEY=VALUE' in capsys.readouterr().out


def test_describe_json_with_context(capsys):
    assert main(['-c', 'github_owner=someone', 'describe']) == 0

    topology = {entry['id']: entry for entry in json.loads(capsys.readouterr().out)}
    assert topology['python_web_pipeline']['properties']['source']['repository'] == \
        'someone/sample-python-web-app'


def test_describe_table(capsys):
    assert main(['describe', '--output', 'table']) == 0

    output = capsys.readouterr().out
    assert output.splitlines()[0].startswith('Component')
    assert 'AWS::EC2::Instance' in output
    assert 'main_vpc, web_sg, ec2Role' in output


def test_describe_to_file(tmp_path, capsys):
    target = tmp_path / 'topology.yaml'

    assert main(['describe', '--output', 'yaml', '--output-file', str(target)]) == 0

    assert 'python-webApp' in target.read_text()
    assert 'Output saved to' in capsys.readouterr().out


def test_diagram_mermaid_to_stdout(capsys):
    assert main(['diagram']) == 0
    assert capsys.readouterr().out.startswith('graph TD')


def test_diagram_mermaid_to_markdown(tmp_path):
    assert main(['-q', 'diagram', '--output', str(tmp_path / 'topology')]) == 0

    content = (tmp_path / 'topology.md').read_text()
    assert content.startswith('# EC2 Pipeline Topology')
    assert '```mermaid\ngraph TD' in content


def test_config_shows_merged_values(capsys, project_config):
    project_config("components:\n  ec2:\n    instance:\n      instance_size: small\n")

    assert main(['-c', 'github_branch=develop', 'config']) == 0

    output = capsys.readouterr().out
    assert 'name: Ec2CdkStack' in output
    assert 'instance_size: small' in output
    assert 'branch: develop' in output


def test_config_sources(capsys, project_config):
    project_config("global: {}\n")

    assert main(['config', '--sources']) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith('✓ package')
    assert lines[1].startswith('✓ project')
    assert lines[2].startswith('- user')


def test_outputs(capsys):
    with patch('ec2_pipeline.cli.DeploymentClient') as mock_client:
        mock_client.return_value.get_instance_address.return_value = '203.0.113.10'

        assert main(['--region', 'eu-west-1', 'outputs']) == 0

    mock_client.assert_called_once_with(region='eu-west-1', profile=None)
    mock_client.return_value.get_instance_address.assert_called_once_with('Ec2CdkStack')
    assert 'Web server: http://203.0.113.10' in capsys.readouterr().out


def test_outputs_use_configured_region(project_config):
    project_config("global:\n  stack:\n    region: eu-west-1\n")

    with patch('ec2_pipeline.cli.DeploymentClient') as mock_client:
        mock_client.return_value.get_instance_address.return_value = '203.0.113.10'

        assert main(['outputs']) == 0

    mock_client.assert_called_once_with(region='eu-west-1', profile=None)


def test_region_flag_overrides_configured_region(project_config):
    project_config("global:\n  stack:\n    region: eu-west-1\n")

    with patch('ec2_pipeline.cli.DeploymentClient') as mock_client:
        mock_client.return_value.check_secret.return_value = True

        main(['--region', 'us-west-2', 'preflight'])

    mock_client.assert_called_once_with(region='us-west-2', profile=None)


def test_preflight_uses_configured_region(bootstrap_script, project_config):
    project_config("global:\n  stack:\n    region: eu-west-1\n")

    with patch('ec2_pipeline.cli.DeploymentClient') as mock_client:
        mock_client.return_value.check_secret.return_value = True

        assert main(['preflight']) == 0

    mock_client.assert_called_once_with(region='eu-west-1', profile=None)


def test_outputs_quiet_prints_address_only(capsys):
    with patch('ec2_pipeline.cli.DeploymentClient') as mock_client:
        mock_client.return_value.get_instance_address.return_value = '203.0.113.10'

        assert main(['-q', 'outputs', '--stack-name', 'WebPipeline']) == 0

    mock_client.return_value.get_instance_address.assert_called_once_with('WebPipeline')
    assert capsys.readouterr().out == '203.0.113.10\n'


def test_outputs_without_address(capsys):
    with patch('ec2_pipeline.cli.DeploymentClient') as mock_client:
        mock_client.return_value.get_instance_address.return_value = None

        assert main(['outputs']) == 1

    assert 'has no public address output' in capsys.readouterr().out


def test_preflight_passes(bootstrap_script, capsys):
    with patch('ec2_pipeline.cli.DeploymentClient') as mock_client:
        mock_client.return_value.check_secret.return_value = True

        assert main(['preflight']) == 0

    mock_client.return_value.check_secret.assert_called_once_with('github-oauth-token')
    output = capsys.readouterr().out
    assert '✓ Bootstrap script' in output
    assert '✓ GitHub token secret: github-oauth-token' in output


def test_preflight_reports_failures(capsys):
    with patch('ec2_pipeline.cli.DeploymentClient') as mock_client:
        mock_client.return_value.check_secret.return_value = False

        assert main(['-c', 'github_token_secret=gh-token', 'preflight']) == 1

    output = capsys.readouterr().out
    assert '✗ Bootstrap script not found' in output
    assert '✗ GitHub token secret not found: gh-token' in output


def test_synth_writes_template(bootstrap_script, tmp_path, capsys):
    assert main(['synth', '--output-dir', str(tmp_path / 'cdk.out')]) == 0

    template = json.loads((tmp_path / 'cdk.out' / 'Ec2CdkStack.template.json').read_text())
    assert 'IPAddress' in template['Outputs']
    assert '✓ Synthesized Ec2CdkStack' in capsys.readouterr().out


def test_synth_without_bootstrap_script_fails(tmp_path, capsys):
    assert main(['synth', '--output-dir', str(tmp_path / 'cdk.out')]) == 1
    assert 'Error: Bootstrap script not found' in capsys.readouterr().out
