"""Configuration system for the EC2 pipeline stack."""

from .loader import HierarchicalConfigLoader, ConfigMergeError
from .schema import (
    ConfigValidationError,
    SourceRepository,
    StackSettings,
    validate_config,
    validate_source,
)

__all__ = [
    "HierarchicalConfigLoader",
    "ConfigMergeError",
    "ConfigValidationError",
    "SourceRepository",
    "StackSettings",
    "validate_config",
    "validate_source",
]
