"""Tests for the deployed-stack client."""

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from ec2_pipeline.deployment import DeploymentClient, StackNotFoundError


def _client_error(code, message, operation):
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation)


@pytest.fixture
def aws_clients():
    """Patch boto3 so each service name maps to its own MagicMock client."""
    clients = {
        'cloudformation': MagicMock(),
        'secretsmanager': MagicMock(),
        'sts': MagicMock(),
    }
    with patch('boto3.Session') as mock_session:
        session = mock_session.return_value
        session.region_name = 'us-east-1'
        session.client.side_effect = lambda service, **kwargs: clients[service]
        yield clients


def test_region_defaults_to_session(aws_clients):
    assert DeploymentClient().region == 'us-east-1'
    assert DeploymentClient(region='eu-west-1').region == 'eu-west-1'


def test_profile_passed_to_session():
    with patch('boto3.Session') as mock_session:
        DeploymentClient(profile='deploy')

    mock_session.assert_called_once_with(profile_name='deploy')


def test_clients_are_cached(aws_clients):
    client = DeploymentClient()

    assert client.get_client('sts') is client.get_client('sts')
    client.session.client.assert_called_once_with('sts', region_name='us-east-1')


def test_stack_outputs(aws_clients):
    aws_clients['cloudformation'].describe_stacks.return_value = {
        'Stacks': [{
            'StackName': 'Ec2CdkStack',
            'Outputs': [{'OutputKey': 'IPAddress', 'OutputValue': '203.0.113.10'}]
        }]
    }

    client = DeploymentClient()

    assert client.get_stack_outputs('Ec2CdkStack') == {'IPAddress': '203.0.113.10'}
    assert client.get_instance_address('Ec2CdkStack') == '203.0.113.10'
    aws_clients['cloudformation'].describe_stacks.assert_called_with(StackName='Ec2CdkStack')


def test_instance_address_missing_output(aws_clients):
    aws_clients['cloudformation'].describe_stacks.return_value = {
        'Stacks': [{'StackName': 'Ec2CdkStack', 'StackStatus': 'CREATE_IN_PROGRESS'}]
    }

    assert DeploymentClient().get_instance_address('Ec2CdkStack') is None


def test_missing_stack(aws_clients):
    aws_clients['cloudformation'].describe_stacks.side_effect = _client_error(
        'ValidationError', 'Stack with id Ec2CdkStack does not exist', 'DescribeStacks'
    )

    with pytest.raises(StackNotFoundError, match='Ec2CdkStack'):
        DeploymentClient().get_stack_outputs('Ec2CdkStack')


def test_other_cloudformation_errors_propagate(aws_clients):
    aws_clients['cloudformation'].describe_stacks.side_effect = _client_error(
        'AccessDenied', 'not authorized', 'DescribeStacks'
    )

    with pytest.raises(ClientError):
        DeploymentClient().get_stack_outputs('Ec2CdkStack')


def test_check_secret(aws_clients):
    client = DeploymentClient()

    assert client.check_secret('github-oauth-token') is True
    aws_clients['secretsmanager'].describe_secret.assert_called_once_with(SecretId='github-oauth-token')


def test_check_secret_missing(aws_clients):
    aws_clients['secretsmanager'].describe_secret.side_effect = _client_error(
        'ResourceNotFoundException', "Secrets Manager can't find the specified secret.", 'DescribeSecret'
    )

    assert DeploymentClient().check_secret('github-oauth-token') is False


def test_check_secret_access_denied_propagates(aws_clients):
    aws_clients['secretsmanager'].describe_secret.side_effect = _client_error(
        'AccessDeniedException', 'not authorized', 'DescribeSecret'
    )

    with pytest.raises(ClientError):
        DeploymentClient().check_secret('github-oauth-token')


def test_account_info(aws_clients):
    aws_clients['sts'].get_caller_identity.return_value = {
        'Account': '123456789012',
        'Arn': 'arn:aws:iam::123456789012:user/deployer',
        'UserId': 'AIDAEXAMPLE'
    }

    assert DeploymentClient().get_account_info() == {
        'account_id': '123456789012',
        'arn': 'arn:aws:iam::123456789012:user/deployer',
        'user_id': 'AIDAEXAMPLE'
    }
