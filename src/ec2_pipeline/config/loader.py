"""Hierarchical configuration loader with deep merge support."""

import os
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
import yaml
from ruamel.yaml import YAML
from collections.abc import Mapping
from copy import deepcopy

logger = logging.getLogger(__name__)

PACKAGE_ROOT = Path(__file__).parent.parent

PROJECT_CONFIG_NAMES = [
    'ec2_pipeline.yaml',
    '.ec2_pipeline.yaml'
]


class ConfigMergeError(Exception):
    """Exception raised when configuration merge fails."""
    pass


def _read_yaml_file(path: Path) -> Dict[str, Any]:
    """Read a user-facing YAML file with ruamel."""
    yaml_reader = YAML(typ='safe')
    with open(path, 'r') as f:
        return yaml_reader.load(f) or {}


class HierarchicalConfigLoader:
    """Load and merge configurations from multiple sources with precedence.

    Lowest to highest: component defaults, package defaults.yaml, project file,
    user file, then CLI arguments / CDK context.
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        """
        Args:
            config_file: Explicit project config file. When given it replaces
                the search for ec2_pipeline.yaml in the working directory tree.
        """
        self.config_file = Path(config_file) if config_file else None
        if self.config_file and not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")
        self._config_cache: Dict[str, Dict[str, Any]] = {}

    def load_component_config(self, service: str, resource_type: str) -> Dict[str, Any]:
        """Load component-specific default configuration."""
        cache_key = f"component.{service}.{resource_type}"
        if cache_key in self._config_cache:
            return self._config_cache[cache_key]

        component_path = self._find_component_config_path(service, resource_type)

        config = {}
        if component_path.exists():
            try:
                with open(component_path, 'r') as f:
                    config = yaml.safe_load(f) or {}
                logger.debug(f"Loaded component config from {component_path}")
            except (yaml.YAMLError, IOError) as e:
                logger.warning(f"Failed to load component config {component_path}: {e}")

        self._config_cache[cache_key] = config
        return config

    def _find_component_config_path(self, service: str, resource_type: str) -> Path:
        """Find the component config file path."""
        return PACKAGE_ROOT / 'components' / service / resource_type / 'config.yaml'

    def load_package_config(self) -> Dict[str, Any]:
        """Load the defaults shipped with the package."""
        cache_key = "package"
        if cache_key in self._config_cache:
            return self._config_cache[cache_key]

        config = {}
        package_path = PACKAGE_ROOT / 'defaults.yaml'
        if package_path.exists():
            try:
                with open(package_path, 'r') as f:
                    config = yaml.safe_load(f) or {}
                logger.debug(f"Loaded package config from {package_path}")
            except (yaml.YAMLError, IOError) as e:
                logger.warning(f"Failed to load package config {package_path}: {e}")

        self._config_cache[cache_key] = config
        return config

    def find_project_config(self) -> Optional[Path]:
        """Locate the project config file, searching upward from the cwd."""
        if self.config_file:
            return self.config_file

        current = Path.cwd()
        while True:
            for config_name in PROJECT_CONFIG_NAMES:
                config_path = current / config_name
                if config_path.exists():
                    return config_path
            if current == current.parent:
                return None
            current = current.parent

    def load_project_config(self) -> Dict[str, Any]:
        """Load project-level configuration."""
        cache_key = "project"
        if cache_key in self._config_cache:
            return self._config_cache[cache_key]

        config = {}
        config_path = self.find_project_config()
        if config_path:
            try:
                config = _read_yaml_file(config_path)
                logger.debug(f"Loaded project config from {config_path}")
            except Exception as e:
                if self.config_file:
                    raise
                logger.warning(f"Failed to load project config {config_path}: {e}")

        self._config_cache[cache_key] = config
        return config

    def user_config_path(self) -> Path:
        xdg_config = os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config')
        return Path(xdg_config) / 'ec2_pipeline' / 'config.yaml'

    def load_user_config(self) -> Dict[str, Any]:
        """Load user-level configuration from XDG_CONFIG_HOME."""
        cache_key = "user"
        if cache_key in self._config_cache:
            return self._config_cache[cache_key]

        config = {}
        user_config_path = self.user_config_path()

        if user_config_path.exists():
            try:
                config = _read_yaml_file(user_config_path)
                logger.debug(f"Loaded user config from {user_config_path}")
            except Exception as e:
                logger.warning(f"Failed to load user config {user_config_path}: {e}")

        self._config_cache[cache_key] = config
        return config

    def deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge two dictionaries, with override taking precedence.

        Merge rules:
        - Dictionaries are merged recursively
        - Lists are replaced (not concatenated)
        - None values in override remove the key
        - All other values replace

        Args:
            base: Base configuration dictionary
            override: Override configuration dictionary

        Returns:
            Merged configuration dictionary

        Raises:
            ConfigMergeError: If merge operation fails
        """
        try:
            result = deepcopy(base)

            for key, value in override.items():
                if value is None:
                    # None means remove this key
                    result.pop(key, None)
                elif (key in result and
                      isinstance(result[key], Mapping) and
                      isinstance(value, Mapping)):
                    result[key] = self.deep_merge(result[key], value)
                else:
                    result[key] = deepcopy(value)

            return result

        except Exception as e:
            raise ConfigMergeError(f"Failed to merge configurations: {e}") from e

    def _layered_sections(self, section: str) -> List[Dict[str, Any]]:
        """Return one named section from each file-based layer, lowest first."""
        layers = []
        for config in (self.load_package_config(),
                       self.load_project_config(),
                       self.load_user_config()):
            value = config.get(section) or {}
            if not isinstance(value, Mapping):
                raise ConfigMergeError(f"Section '{section}' must be a mapping, got {type(value).__name__}")
            layers.append(value)
        return layers

    def get_component_config(
        self,
        service: str,
        resource_type: str,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Get the final merged configuration for a component.

        Args:
            service: Service name (e.g., 'ec2', 'codepipeline')
            resource_type: Resource type (e.g., 'vpc', 'pipeline')
            cli_overrides: Optional CLI argument overrides

        Returns:
            Merged configuration dictionary
        """
        config = self.load_component_config(service, resource_type)

        for layer in self._layered_sections('components'):
            service_config = layer.get(service) or {}
            if resource_type in service_config:
                config = self.deep_merge(config, service_config[resource_type] or {})

        if cli_overrides:
            config = self.deep_merge(config, cli_overrides)

        return config

    def get_global_config(self, cli_overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Get global configuration that applies to the whole stack."""
        config = {}

        for layer in self._layered_sections('global'):
            config = self.deep_merge(config, layer)

        if cli_overrides:
            config = self.deep_merge(config, cli_overrides)

        return config

    def get_config_sources(self) -> List[Dict[str, Any]]:
        """
        Get information about configuration sources for debugging.

        Returns:
            List of dicts with 'source', 'path', and 'exists' keys
        """
        package_path = PACKAGE_ROOT / 'defaults.yaml'
        project_path = self.find_project_config()
        user_path = self.user_config_path()

        return [
            {
                'source': 'package',
                'path': str(package_path),
                'exists': package_path.exists()
            },
            {
                'source': 'project',
                'path': str(project_path) if project_path else 'N/A',
                'exists': project_path is not None
            },
            {
                'source': 'user',
                'path': str(user_path),
                'exists': user_path.exists()
            }
        ]
