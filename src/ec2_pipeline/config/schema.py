"""Configuration schema validation."""

from typing import Annotated, Dict, Any, List, Optional
import logging

from pydantic import BaseModel, Field, StringConstraints, ValidationError

logger = logging.getLogger(__name__)


class ConfigValidationError(ValueError):
    """Raised when a configuration section does not match its schema."""

    def __init__(self, section: str, errors: List[str]):
        self.section = section
        self.errors = errors
        super().__init__(
            f"Configuration validation failed for '{section}':\n" + "\n".join(errors)
        )


class StackSettings(BaseModel):
    """Stack-wide settings from the ``global.stack`` section."""

    name: str = Field(
        default="Ec2CdkStack",
        min_length=1,
        max_length=128,
        pattern=r"^[A-Za-z][A-Za-z0-9-]*$",
        description="CloudFormation stack name and CDK construct id"
    )
    description: Optional[str] = Field(
        default=None,
        description="Stack description shown in the CloudFormation console"
    )
    account: Optional[Annotated[str, StringConstraints(pattern=r"^\d{12}$")]] = Field(
        default=None,
        description="Target AWS account; environment-agnostic when unset"
    )
    region: Optional[str] = Field(
        default=None,
        description="Target AWS region; environment-agnostic when unset"
    )


class SourceRepository(BaseModel):
    """GitHub repository the pipeline pulls from."""

    owner: str = Field(min_length=1, description="GitHub user or organization")
    repo: str = Field(min_length=1, description="Repository name")
    branch: str = Field(default="main", min_length=1, description="Branch that triggers the pipeline")
    oauth_secret_name: str = Field(
        default="github-oauth-token",
        min_length=1,
        description="Secrets Manager secret holding the GitHub OAuth token"
    )


def _format_errors(exc: ValidationError) -> List[str]:
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "<root>"
        errors.append(f"{location}: {error['msg']}")
    return errors


def validate_config(config: Dict[str, Any]) -> StackSettings:
    """Validate the merged global configuration.

    Args:
        config: Global configuration dictionary (the ``global`` section)

    Returns:
        Parsed stack settings

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    try:
        settings = StackSettings.model_validate(config.get("stack") or {})
    except ValidationError as e:
        error = ConfigValidationError("global.stack", _format_errors(e))
        logger.error(str(error))
        raise error from e

    logger.debug("Configuration validation passed")
    return settings


def validate_source(config: Dict[str, Any]) -> SourceRepository:
    """Validate a pipeline ``source`` section."""
    try:
        return SourceRepository.model_validate(config or {})
    except ValidationError as e:
        error = ConfigValidationError("source", _format_errors(e))
        logger.error(str(error))
        raise error from e
