"""Read-only access to the deployed stack and its prerequisites."""

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# Logical id CDK derives from the "IP Address" output
INSTANCE_ADDRESS_OUTPUT = 'IPAddress'


class StackNotFoundError(Exception):
    """Raised when the CloudFormation stack has not been deployed."""
    pass


class DeploymentClient:
    """Manages boto3 clients for post-deploy and pre-deploy checks."""

    def __init__(self, region: Optional[str] = None, profile: Optional[str] = None):
        """
        Initialize AWS client manager.

        Args:
            region: AWS region the stack lives in (session default when None)
            profile: AWS profile name to use
        """
        self.session = boto3.Session(profile_name=profile) if profile else boto3.Session()
        self.region = region or self.session.region_name
        self._clients = {}
        logger.debug(f"Initialized DeploymentClient for region: {self.region}")

    def get_client(self, service: str):
        """
        Get or create a boto3 client.

        Args:
            service: AWS service name (e.g., 'cloudformation', 'secretsmanager')

        Returns:
            boto3 client instance
        """
        if service not in self._clients:
            try:
                self._clients[service] = self.session.client(service, region_name=self.region)
                logger.debug(f"Created {service} client for region {self.region}")
            except Exception as e:
                logger.error(f"Failed to create {service} client for region {self.region}: {e}")
                raise

        return self._clients[service]

    def get_stack_outputs(self, stack_name: str) -> Dict[str, str]:
        """
        Get the outputs of a deployed stack.

        Args:
            stack_name: CloudFormation stack name

        Returns:
            Mapping of output key to value

        Raises:
            StackNotFoundError: If the stack does not exist
        """
        client = self.get_client('cloudformation')
        try:
            response = client.describe_stacks(StackName=stack_name)
        except ClientError as e:
            message = e.response.get('Error', {}).get('Message', '')
            if 'does not exist' in message:
                raise StackNotFoundError(f"Stack '{stack_name}' not found in {self.region}") from e
            raise

        stacks = response.get('Stacks', [])
        if not stacks:
            raise StackNotFoundError(f"Stack '{stack_name}' not found in {self.region}")

        return {
            output['OutputKey']: output.get('OutputValue', '')
            for output in stacks[0].get('Outputs', [])
        }

    def get_instance_address(self, stack_name: str) -> Optional[str]:
        """Public IP of the web server, or None while the output is absent."""
        outputs = self.get_stack_outputs(stack_name)
        address = outputs.get(INSTANCE_ADDRESS_OUTPUT)
        if address is None:
            logger.warning(f"Stack '{stack_name}' has no {INSTANCE_ADDRESS_OUTPUT} output")
        return address

    def check_secret(self, name: str) -> bool:
        """
        Check that a Secrets Manager secret exists.

        Args:
            name: Secret name or ARN

        Returns:
            True if the secret exists, False if it does not
        """
        client = self.get_client('secretsmanager')
        try:
            client.describe_secret(SecretId=name)
            return True
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ResourceNotFoundException':
                logger.debug(f"Secret {name} not found")
                return False
            raise

    def get_account_info(self) -> Dict[str, Any]:
        """Get AWS account information."""
        response = self.get_client('sts').get_caller_identity()
        return {
            "account_id": response["Account"],
            "arn": response["Arn"],
            "user_id": response["UserId"]
        }
